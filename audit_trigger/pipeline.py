"""
Audit table & trigger orchestrator.

Wires catalog discovery, DDL generation and execution for one source table.
``AuditTriggerBuilder`` is the single object the CLI (or any caller) uses.

Steps:
  prepare
    0. Resolve connection string / table name (arguments win over config)
    1. Open (or reuse) the connection
    2. Check the source table exists
    3. Generate audit table DDL (DROP / CREATE / ALTER as needed)
    4. Generate trigger DDL from the catalog column list
  execute
    1. Select bundles by selector and create_* flags
    2. Use the connection the DDL was prepared against
    3. Run each statement in generated order, stop at the first failure

Outcome policy:
  - Missing connection string / table name → empty ``PreparedDDL`` with a
    ``SkipReason``; no connection is opened.
  - Source table not found → empty ``PreparedDDL`` (``TABLE_NOT_FOUND``).
  - Audit table exists and ``drop_audit_first`` is off → ``create_audit``
    is False; the trigger is still generated (``CREATE OR REPLACE``).
  - A rejected statement → ``StatementError`` from ``execute``; ``run``
    returns it in ``ExecutionResult.error`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import oracledb

from audit_trigger.configs.config import TriggerConfig
from audit_trigger.configs.exceptions import CatalogError, StatementError
from audit_trigger.discovery.catalog import describe_table, object_exists
from audit_trigger.discovery.ddl_builder import build_audit_table_ddl, build_trigger
from audit_trigger.discovery.oracle_client import connect_string
from audit_trigger.utils.identifiers import to_column_name, to_object_name

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SkipReason(str, Enum):
    """Why ``prepare`` produced nothing to execute."""
    MISSING_CONNECTION_STRING = "missing_connection_string"
    MISSING_TABLE_NAME = "missing_table_name"
    TABLE_NOT_FOUND = "table_not_found"


class TriggerType(str, Enum):
    """Kinds of trigger ``prepare`` can generate."""
    DATA = "DATA"

    @classmethod
    def parse(cls, value: "TriggerType | str | None") -> "TriggerType":
        if isinstance(value, cls):
            return value
        if not value:
            return cls.DATA
        try:
            return cls(value.strip().upper())
        except ValueError:
            raise ValueError(
                f"Unsupported trigger type '{value}'. Supported: "
                f"{', '.join(t.value for t in cls)}"
            ) from None


class Selector(str, Enum):
    """Which bundles ``execute`` runs."""
    AUDIT = "audit"
    TRIGGER = "trigger"
    BOTH = "both"

    @classmethod
    def parse(cls, value: "Selector | str | None") -> "Selector":
        """
        ``aud...`` → AUDIT, ``tri...`` → TRIGGER, anything else → BOTH.
        Matching is case-insensitive on the leading characters.
        """
        if isinstance(value, cls):
            return value
        text = (value or "").strip().lower()
        if text.startswith("aud"):
            return cls.AUDIT
        if text.startswith("tri"):
            return cls.TRIGGER
        return cls.BOTH

    @property
    def includes_audit(self) -> bool:
        return self in (Selector.AUDIT, Selector.BOTH)

    @property
    def includes_trigger(self) -> bool:
        return self in (Selector.TRIGGER, Selector.BOTH)


# ---------------------------------------------------------------------------
# Result objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PreparedDDL:
    """
    Everything ``prepare`` generated for one source table.

    Attributes:
        table_name:         Upper-cased source table (``""`` when skipped).
        audit_table:        Audit table name.
        trigger_name:       Trigger name.
        create_audit:       True if the audit bundle should be executed.
        create_trigger:     True if the trigger bundle should be executed.
        audit_statements:   DROP / CREATE / ALTER in execution order; empty
                            when the audit table already exists and is kept.
        trigger_statements: The single CREATE OR REPLACE TRIGGER statement.
        skip_reason:        Set when nothing was generated.
        connection_string:  The connection the statements were prepared
                            against; ``execute`` runs them there.
    """
    table_name: str = ""
    audit_table: str = ""
    trigger_name: str = ""
    create_audit: bool = False
    create_trigger: bool = False
    audit_statements: tuple[str, ...] = ()
    trigger_statements: tuple[str, ...] = ()
    skip_reason: SkipReason | None = None
    connection_string: str = field(default="", repr=False)

    @classmethod
    def nothing(cls, reason: SkipReason, table_name: str = "") -> "PreparedDDL":
        return cls(table_name=table_name, skip_reason=reason)

    @property
    def is_empty(self) -> bool:
        return self.skip_reason is not None

    @property
    def bundles(self) -> dict[str, list[str]]:
        """
        Generated object name → statements, audit table first.

        The audit entry is present even when its statement list is empty;
        use ``create_audit`` to tell "kept" from "created".
        """
        if self.is_empty:
            return {}
        return {
            self.audit_table: list(self.audit_statements),
            self.trigger_name: list(self.trigger_statements),
        }

    @property
    def statements(self) -> list[str]:
        """All statements in generated order."""
        return [*self.audit_statements, *self.trigger_statements]


@dataclass
class ExecutionResult:
    """
    Summary of one ``execute`` / ``run`` call.

    Attributes:
        selector: The resolved selector.
        executed: Statements that completed, in order.
        skipped:  Names of bundles that were not run.
        error:    The ``StatementError`` that stopped the run (``run`` only).
    """
    selector: Selector = Selector.BOTH
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    error: StatementError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------

class AuditTriggerBuilder:
    """
    Generates and applies audit table / trigger DDL for Oracle tables.

    The builder owns one connection, opened lazily by the first ``prepare``
    that needs it.  Everything ``prepare`` produces is returned in an
    immutable ``PreparedDDL`` that is passed back into ``execute``; the
    builder keeps no per-table state between calls.

    Args:
        config:  Defaults for connection string, table, names and drop flag.
        connect: Connection provider, ``conn_string -> connection``.
                 Defaults to ``oracle_client.connect_string``.

    Example::

        with AuditTriggerBuilder(TriggerConfig(drop_audit_first=True)) as builder:
            prepared = builder.prepare("scott/tiger@orclpdb1", "emp")
            builder.execute(prepared)
    """

    def __init__(
        self,
        config: TriggerConfig | None = None,
        connect: Callable[[str], object] | None = None,
    ) -> None:
        self.config = config if config is not None else TriggerConfig()
        self._connect = connect or connect_string
        self._conn = None
        self._conn_string: str | None = None

    # ── context manager ──────────────────────────────────────────────────

    def __enter__(self) -> "AuditTriggerBuilder":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
        return None

    def close(self) -> None:
        """Close the owned connection, if any."""
        if self._conn is not None:
            try:
                self._conn.close()
            except oracledb.Error as e:
                logger.warning("Error closing connection: %s", e)
            self._conn = None
            self._conn_string = None

    @property
    def connection(self):
        return self._conn

    # ── prepare ──────────────────────────────────────────────────────────

    def prepare(
        self,
        connection_string: str | None = None,
        table_name: str | None = None,
        trigger_type: TriggerType | str = TriggerType.DATA,
    ) -> PreparedDDL:
        """
        Generate the audit table and trigger DDL for ``table_name``.

        Args:
            connection_string: Overrides ``config.connection_string``.
            table_name:        Overrides ``config.table_name``.
            trigger_type:      Only ``DATA`` is supported.

        Returns:
            ``PreparedDDL``; empty (with ``skip_reason``) when inputs are
            missing or the source table does not exist.

        Raises:
            IdentifierError:       If a table, trigger or column name is invalid.
            OracleConnectionError: If the connection cannot be opened.
            CatalogError:          If a catalog query fails.
        """
        trigger_type = TriggerType.parse(trigger_type)
        logger.info("Preparing %s trigger DDL", trigger_type.value)

        logger.info("0 - checking inputs...")
        cs = connection_string or self.config.connection_string
        tn = table_name or self.config.table_name
        if not cs:
            logger.info("Connection string is not specified.")
            return PreparedDDL.nothing(SkipReason.MISSING_CONNECTION_STRING)
        if not tn:
            logger.info("Table name is not specified.")
            return PreparedDDL.nothing(SkipReason.MISSING_TABLE_NAME)

        table = to_object_name(tn, self.config, existing=True)

        logger.info("1 - opening database connection...")
        conn = self._connection_for(cs)

        logger.info("2 - checking the existence of table %s...", table)
        if not object_exists(conn, table):
            logger.info("Table %s could not be found.", table)
            return PreparedDDL.nothing(SkipReason.TABLE_NOT_FOUND, table_name=table)

        logger.info("3 - generating SQL for creating audit table...")
        audit_table = to_object_name(self.config.resolve_audit_table(table), self.config)
        audit_statements, create_audit = self._audit_statements(conn, table, audit_table)

        logger.info("4 - generating SQL for creating trigger...")
        trigger_name = to_object_name(self.config.resolve_trigger_name(table), self.config)
        logger.info("    Trigger %s will be created or replaced.", trigger_name)
        description = describe_table(conn, table)
        if not description.columns:
            raise CatalogError("Table has no columns in the catalog.", object_name=table)
        column_names = [to_column_name(c) for c in description.column_names]
        trigger_sql = build_trigger(trigger_name, table, audit_table, column_names)

        return PreparedDDL(
            table_name=table,
            audit_table=audit_table,
            trigger_name=trigger_name,
            create_audit=create_audit,
            create_trigger=True,
            audit_statements=tuple(audit_statements),
            trigger_statements=(trigger_sql,),
            connection_string=cs,
        )

    def _audit_statements(self, conn, table: str, audit_table: str) -> tuple[list[str], bool]:
        if not object_exists(conn, audit_table):
            logger.info("    Audit table %s does not exist.", audit_table)
            return build_audit_table_ddl(audit_table, table), True

        if self.config.drop_audit_first:
            logger.info(
                "    Audit table %s will be dropped before being created.", audit_table
            )
            return build_audit_table_ddl(audit_table, table, drop_first=True), True

        logger.info("    Audit table %s exists and will not be created.", audit_table)
        return [], False

    def _connection_for(self, conn_string: str):
        if self._conn is not None and conn_string == self._conn_string:
            return self._conn
        self.close()
        self._conn = self._connect(conn_string)
        self._conn_string = conn_string
        return self._conn

    # ── execute ──────────────────────────────────────────────────────────

    def execute(
        self,
        prepared: PreparedDDL,
        selector: Selector | str | None = Selector.BOTH,
    ) -> ExecutionResult:
        """
        Run the selected bundles of ``prepared``.

        Statements run on the connection ``prepared`` was generated against;
        if the builder has since moved to another database, that connection
        is reopened first.

        Args:
            prepared: Result of ``prepare``.
            selector: ``audit``, ``trigger`` or ``both`` (prefix match).

        Returns:
            ``ExecutionResult`` listing executed statements and skipped bundles.

        Raises:
            StatementError: On the first statement the database rejects;
                            later statements are not run.
            OracleConnectionError: If the connection cannot be reopened.
        """
        result = ExecutionResult(selector=Selector.parse(selector))
        self._execute_into(prepared, result)
        return result

    def run(
        self,
        prepared: PreparedDDL,
        selector: Selector | str | None = Selector.BOTH,
    ) -> ExecutionResult:
        """
        Like ``execute``, but a rejected statement is reported in
        ``ExecutionResult.error`` instead of raised.
        """
        result = ExecutionResult(selector=Selector.parse(selector))
        try:
            self._execute_into(prepared, result)
        except StatementError as e:
            logger.error("Execution stopped: %s", e)
            result.error = e
        return result

    def _execute_into(self, prepared: PreparedDDL, result: ExecutionResult) -> None:
        selector = result.selector
        logger.info("Executing SQL statements (%s)", selector.value)

        statements: list[str] = []
        if prepared.is_empty:
            logger.info("Nothing prepared (%s).", prepared.skip_reason.value)
        else:
            if selector.includes_audit and prepared.create_audit:
                logger.info("    creating audit table %s...", prepared.audit_table)
                statements.extend(prepared.audit_statements)
            else:
                logger.info("    creating audit table: skipped.")
                result.skipped.append(prepared.audit_table)

            if selector.includes_trigger and prepared.create_trigger:
                logger.info("    creating trigger %s...", prepared.trigger_name)
                statements.extend(prepared.trigger_statements)
            else:
                logger.info("    creating trigger: skipped.")
                result.skipped.append(prepared.trigger_name)

        if not statements:
            logger.info("No SQL statements.")
            return

        if not prepared.connection_string:
            raise StatementError("Prepared DDL has no connection string; use prepare().")
        conn = self._connection_for(prepared.connection_string)

        with conn.cursor() as cursor:
            for sql in statements:
                logger.debug("Executing:\n%s", sql)
                try:
                    cursor.execute(sql)
                except oracledb.Error as e:
                    raise StatementError(f"Statement rejected: {e}", ddl=sql) from e
                result.executed.append(sql)
