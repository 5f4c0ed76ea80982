"""
DDL generation for audit tables and audit triggers.

All functions are **pure** — they accept names and column lists and return
SQL strings.  No database connection is required, which keeps them
trivially testable and lets ``show`` print DDL without executing it.

Responsibilities:
  - ``build_drop_table``          — DROP TABLE for an existing audit table
  - ``build_create_audit_table``  — structure-only copy of the source table
  - ``build_alter_audit_table``   — adds the three audit columns
  - ``build_column_fragments``    — target / :new / :old column lists
  - ``build_trigger``             — CREATE OR REPLACE TRIGGER statement

Generated trigger shape::

    CREATE OR REPLACE TRIGGER TRG$EMP
      AFTER INSERT OR DELETE OR UPDATE ON EMP
      FOR EACH ROW
    DECLARE
      v_operation VARCHAR2(10) := NULL;
    BEGIN
      IF INSERTING THEN
        v_operation := 'INS';
      ELSIF UPDATING THEN
        v_operation := 'UPD';
      ELSE
        v_operation := 'DEL';
      END IF;
      IF INSERTING OR UPDATING THEN
        INSERT INTO AUD$EMP (
          ID,
          ...
          AUDIT_ACTION,
          AUDIT_DTM,
          AUDIT_USER
        ) VALUES (
          :new.ID,
          ...
          v_operation,
          SYSDATE,
          USER
        );
      ELSE
        ... same with :old. ...
      END IF;
    END;

Names are interpolated as plain text; callers pass names that have already
been through ``utils.identifiers``.
"""

from __future__ import annotations

from dataclasses import dataclass

from audit_trigger.configs.config import AUDIT_COLUMNS
from audit_trigger.configs.exceptions import StatementError

_INDENT = "      "

OPERATION_VARIABLE = "v_operation"

# Values written into the three audit columns, in AUDIT_COLUMNS order
_AUDIT_VALUES = (OPERATION_VARIABLE, "SYSDATE", "USER")


# ---------------------------------------------------------------------------
# Audit table
# ---------------------------------------------------------------------------

def build_drop_table(table_name: str) -> str:
    return f"DROP TABLE {table_name}"


def build_create_audit_table(audit_table: str, source_table: str) -> str:
    """
    Generate a ``CREATE TABLE ... AS SELECT`` that copies the source table's
    structure with zero rows.
    """
    return (
        f"CREATE TABLE {audit_table} AS\n"
        f"  SELECT *\n"
        f"    FROM {source_table}\n"
        f"   WHERE 1=0"
    )


def build_alter_audit_table(audit_table: str) -> str:
    """Generate the ``ALTER TABLE ... ADD`` for the audit metadata columns."""
    col_defs = ",\n".join(f"  {name} {sql_type}" for name, sql_type in AUDIT_COLUMNS)
    return f"ALTER TABLE {audit_table} ADD (\n{col_defs}\n  )"


def build_audit_table_ddl(
    audit_table: str,
    source_table: str,
    drop_first: bool = False,
) -> list[str]:
    """
    Return the audit-table statements in execution order:
    optional DROP, then CREATE, then ALTER.
    """
    statements = []
    if drop_first:
        statements.append(build_drop_table(audit_table))
    statements.append(build_create_audit_table(audit_table, source_table))
    statements.append(build_alter_audit_table(audit_table))
    return statements


# ---------------------------------------------------------------------------
# Trigger column lists
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnFragments:
    """
    The three column lists embedded in the trigger body.

    Each fragment has one indented line per source column followed by three
    audit entries, so every fragment is ``len(columns) + 3`` lines long.

    Attributes:
        targets:    Audit-table column names (INSERT column list).
        new_values: ``:new.<COL>`` references (insert/update path).
        old_values: ``:old.<COL>`` references (delete path).
    """
    targets: str
    new_values: str
    old_values: str


def build_column_fragments(column_names: list[str]) -> ColumnFragments:
    """
    Build the target / ``:new.`` / ``:old.`` column lists.

    Args:
        column_names: Source column names in catalog order.

    Raises:
        StatementError: If ``column_names`` is empty.
    """
    if not column_names:
        raise StatementError("Cannot build a trigger for a table with no columns.")

    names = [c.upper() for c in column_names]
    audit_names = [name.upper() for name, _ in AUDIT_COLUMNS]

    return ColumnFragments(
        targets=_fragment(names + audit_names),
        new_values=_fragment([f":new.{c}" for c in names] + list(_AUDIT_VALUES)),
        old_values=_fragment([f":old.{c}" for c in names] + list(_AUDIT_VALUES)),
    )


def _fragment(entries: list[str]) -> str:
    return ",\n".join(f"{_INDENT}{entry}" for entry in entries)


# ---------------------------------------------------------------------------
# Trigger
# ---------------------------------------------------------------------------

def build_trigger(
    trigger_name: str,
    table_name: str,
    audit_table: str,
    column_names: list[str],
) -> str:
    """
    Generate the ``CREATE OR REPLACE TRIGGER`` statement that copies every
    changed row of ``table_name`` into ``audit_table``.

    Args:
        trigger_name: Trigger to create or replace.
        table_name:   Source table the trigger fires on.
        audit_table:  Audit table receiving the rows.
        column_names: Source column names in catalog order.

    Returns:
        Complete PL/SQL trigger statement (ends with ``END;``).

    Raises:
        StatementError: If ``column_names`` is empty.
    """
    frag = build_column_fragments(column_names)
    return (
        f"CREATE OR REPLACE TRIGGER {trigger_name}\n"
        f"  AFTER INSERT OR DELETE OR UPDATE ON {table_name}\n"
        f"  FOR EACH ROW\n"
        f"DECLARE\n"
        f"  {OPERATION_VARIABLE} VARCHAR2(10) := NULL;\n"
        f"BEGIN\n"
        f"  IF INSERTING THEN\n"
        f"    {OPERATION_VARIABLE} := 'INS';\n"
        f"  ELSIF UPDATING THEN\n"
        f"    {OPERATION_VARIABLE} := 'UPD';\n"
        f"  ELSE\n"
        f"    {OPERATION_VARIABLE} := 'DEL';\n"
        f"  END IF;\n"
        f"  IF INSERTING OR UPDATING THEN\n"
        f"{_audit_insert(audit_table, frag.targets, frag.new_values)}"
        f"  ELSE\n"
        f"{_audit_insert(audit_table, frag.targets, frag.old_values)}"
        f"  END IF;\n"
        f"END;\n"
    )


def _audit_insert(audit_table: str, targets: str, values: str) -> str:
    return (
        f"    INSERT INTO {audit_table} (\n"
        f"{targets}\n"
        f"    ) VALUES (\n"
        f"{values}\n"
        f"    );\n"
    )
