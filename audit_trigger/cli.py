"""
audit-trigger — create Oracle audit tables and audit triggers.

Environment variables read (a local ``.env`` file is loaded first):
    DB_CONN_STRING        user/password@dsn[:role/role_password]
    AUDIT_SOURCE_TABLE    Optional: default source table
    AUDIT_TABLE_NAME      Optional: override AUD$<TABLE>
    AUDIT_TRIGGER_NAME    Optional: override TRG$<TABLE>
    DROP_AUDIT_TABLE      Optional: "true" to drop an existing audit table first
    ORACLE_MAX_IDENTIFIER_LEN  Optional: 30 (default) or 128

Commands:
    show      Print the DDL that would be executed. Nothing is executed.
    create    Generate and execute the DDL.

Usage examples:
    audit-trigger show   --table EMP
    audit-trigger create --table SCOTT.EMP --drop-audit
    audit-trigger create --table EMP --only trigger --conn scott/tiger@orclpdb1

Exit codes:
    0  Success
    1  Nothing to do (missing table) or a statement was rejected
    2  Configuration / argument / connection error
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys

from dotenv import load_dotenv

from audit_trigger.configs.config import TriggerConfig
from audit_trigger.configs.exceptions import AuditTriggerError, StatementError
from audit_trigger.pipeline import AuditTriggerBuilder, PreparedDDL, SkipReason


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        level=level,
        stream=sys.stdout,
    )


# ---------------------------------------------------------------------------
# Config: env vars + optional CLI overrides
# ---------------------------------------------------------------------------

def _build_config(args: argparse.Namespace) -> TriggerConfig:
    """
    Priority order for each setting:
      1. CLI flag (--conn, --table, --audit-table, ...)
      2. Environment variable (or .env)
      3. TriggerConfig default
    """
    config = TriggerConfig()
    overrides: dict = {}

    if args.conn:
        overrides["connection_string"] = args.conn
    if args.table:
        overrides["table_name"] = args.table
    if getattr(args, "audit_table", None):
        overrides["audit_table_name"] = args.audit_table
    if getattr(args, "trigger_name", None):
        overrides["trigger_name"] = args.trigger_name
    if getattr(args, "drop_audit", False):
        overrides["drop_audit_first"] = True

    return dataclasses.replace(config, **overrides)


# ---------------------------------------------------------------------------
# Result printer
# ---------------------------------------------------------------------------

def _print_prepared(prepared: PreparedDDL) -> None:
    if prepared.is_empty:
        print(f"Nothing to do: {prepared.skip_reason.value}")
        return
    for name, statements in prepared.bundles.items():
        print(f"-- {name}")
        if not statements:
            print("-- (exists, not re-created)")
        for stmt in statements:
            print(stmt.rstrip())
            # PL/SQL blocks end with END; and need a slash in SQL*Plus
            print("/" if stmt.rstrip().endswith("END;") else ";")
        print()


def _skip_exit_code(prepared: PreparedDDL) -> int:
    if prepared.skip_reason is SkipReason.MISSING_CONNECTION_STRING:
        print("ERROR: No connection string. Set DB_CONN_STRING or pass --conn.", file=sys.stderr)
        return 2
    if prepared.skip_reason is SkipReason.MISSING_TABLE_NAME:
        print("ERROR: No table name. Set AUDIT_SOURCE_TABLE or pass --table.", file=sys.stderr)
        return 2
    print(f"Table {prepared.table_name} was not found.", file=sys.stderr)
    return 1


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------

def _cmd_show(args: argparse.Namespace, builder: AuditTriggerBuilder) -> int:
    prepared = builder.prepare()
    _print_prepared(prepared)
    if prepared.is_empty:
        return _skip_exit_code(prepared)
    return 0


def _cmd_create(args: argparse.Namespace, builder: AuditTriggerBuilder) -> int:
    prepared = builder.prepare()
    if prepared.is_empty:
        return _skip_exit_code(prepared)

    result = builder.run(prepared, args.only)
    if result.error is not None:
        print(f"✗ FAILED: {result.error}", file=sys.stderr)
        return 1

    print(f"✓ SUCCESS: {prepared.table_name}")
    print(f"  Executed : {len(result.executed)} statement(s)")
    if result.skipped:
        print(f"  Skipped  : {', '.join(result.skipped)}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser (importable for tests)
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audit-trigger",
        description="Create Oracle audit tables and audit triggers",
        epilog="The connection string (DB_CONN_STRING) can also come from a .env file.",
    )
    parser.add_argument("--verbose", "-v", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)

    def _common_args(p):
        p.add_argument("--conn",  default=None, help="user/password@dsn[:role/role_password]")
        p.add_argument("--table", default=None, help="TABLE or SCHEMA.TABLE")
        p.add_argument("--audit-table",  default=None, dest="audit_table")
        p.add_argument("--trigger-name", default=None, dest="trigger_name")
        p.add_argument("--drop-audit",   action="store_true", dest="drop_audit",
                       help="Drop an existing audit table and re-create it")

    p_show = sub.add_parser("show", help="Print the DDL without executing it")
    _common_args(p_show)

    p_create = sub.add_parser("create", help="Create the audit table and trigger")
    _common_args(p_create)
    p_create.add_argument("--only", default="both", choices=["audit", "trigger", "both"])

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)
    handlers = {"show": _cmd_show, "create": _cmd_create}

    with AuditTriggerBuilder(_build_config(args)) as builder:
        try:
            return handlers[args.command](args, builder)
        except StatementError as e:
            print(f"✗ FAILED: {e}", file=sys.stderr)
            return 1
        except AuditTriggerError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2


if __name__ == "__main__":
    sys.exit(main())
