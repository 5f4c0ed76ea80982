"""
Audit trigger configuration.

All tuneable constants live here. Import from this module everywhere —
never hardcode audit column names, name prefixes, or Oracle limits inline.

Usage:
    from audit_trigger.configs.config import TriggerConfig
    cfg = TriggerConfig()                                  # defaults / env
    cfg = TriggerConfig(table_name="EMP", drop_audit_first=True)

Environment overrides (optional) can be loaded via .env / os.environ before
constructing the config object; this module does not load .env itself.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


# Oracle hard limits (do not change unless Oracle version changes)
ORACLE_MAX_IDENTIFIER_LEN_LEGACY: int = 30
"""Max identifier length for Oracle < 12.2 (pre-long-identifiers)."""

ORACLE_MAX_IDENTIFIER_LEN_EXTENDED: int = 128
"""Max identifier length for Oracle >= 12.2 with COMPATIBLE >= 12.2."""


# Generated object naming
AUDIT_TABLE_PREFIX: str = "AUD$"
TRIGGER_PREFIX: str = "TRG$"


# Date columns are rendered with a fixed format and display width
DATE_FORMAT: str = "YYYYMMDD.HH24MISS"
DATE_DISPLAY_WIDTH: int = 17


# Columns appended to every audit table, in order
AUDIT_COLUMNS: tuple[tuple[str, str], ...] = (
    ("audit_action", "CHAR(3)"),
    ("audit_dtm", "DATE"),
    ("audit_user", "VARCHAR2(30)"),
)


def _env_flag(key: str) -> bool:
    return os.environ.get(key, "false").strip().lower() in ("1", "true", "yes", "y")


@dataclass(slots=True)
class TriggerConfig:
    """
    Runtime configuration for audit table / trigger generation.

    Attributes:
        connection_string: Default ``user/password@dsn[:role/role_password]``
            used when ``prepare`` is not given one.
        table_name: Default source table (``TABLE`` or ``SCHEMA.TABLE``).
        audit_table_name: Overrides the generated ``AUD$<TABLE>`` name.
        trigger_name: Overrides the generated ``TRG$<TABLE>`` name.
        drop_audit_first: If True, an existing audit table is dropped and
            re-created. If False, an existing audit table is left alone.
        oracle_max_identifier_len: Set to 30 for legacy Oracle, 128 for extended.
    """

    connection_string: str = field(
        default_factory=lambda: os.environ.get("DB_CONN_STRING", "")
    )
    table_name: str = field(
        default_factory=lambda: os.environ.get("AUDIT_SOURCE_TABLE", "")
    )
    audit_table_name: str = field(
        default_factory=lambda: os.environ.get("AUDIT_TABLE_NAME", "")
    )
    trigger_name: str = field(
        default_factory=lambda: os.environ.get("AUDIT_TRIGGER_NAME", "")
    )
    drop_audit_first: bool = field(
        default_factory=lambda: _env_flag("DROP_AUDIT_TABLE")
    )
    oracle_max_identifier_len: int = field(
        default_factory=lambda: int(
            os.environ.get("ORACLE_MAX_IDENTIFIER_LEN", str(ORACLE_MAX_IDENTIFIER_LEN_LEGACY))
        )
    )

    def resolve_audit_table(self, table_name: str) -> str:
        """
        Return the audit table name for ``table_name``.

        The configured override wins; otherwise ``AUD$`` is prefixed to the
        table part, keeping any schema qualifier (``SCOTT.EMP`` → ``SCOTT.AUD$EMP``).
        """
        if self.audit_table_name:
            return self.audit_table_name.upper()
        return _prefixed(AUDIT_TABLE_PREFIX, table_name)

    def resolve_trigger_name(self, table_name: str) -> str:
        """Return the trigger name for ``table_name`` (override, else ``TRG$<TABLE>``)."""
        if self.trigger_name:
            return self.trigger_name.upper()
        return _prefixed(TRIGGER_PREFIX, table_name)


def _prefixed(prefix: str, table_name: str) -> str:
    schema, _, name = table_name.strip().rpartition(".")
    generated = f"{prefix}{name}".upper()
    if schema:
        return f"{schema.upper()}.{generated}"
    return generated
