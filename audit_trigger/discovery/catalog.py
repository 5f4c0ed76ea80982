"""
Catalog introspection: column metadata and object existence.

Two public entry points, both read-only and bind-variable based:

  - ``describe_table``  — ordered ``ColumnDescriptor`` list + comment lookup.
  - ``object_exists``   — does ``[SCHEMA.]NAME`` of a given type exist?

Schema-qualified names (``SCOTT.EMP``) are looked up in the ``ALL_*`` views
filtered by ``OWNER``; bare names go to the ``USER_*`` views of the
connected user.

``*_TAB_COLUMNS`` columns used:
    COLUMN_NAME, DATA_TYPE, DATA_LENGTH, DATA_PRECISION, DATA_SCALE,
    NULLABLE, COLUMN_ID

Invisible columns have a NULL ``COLUMN_ID`` and are not copied by
``CREATE TABLE ... AS SELECT *``, so they are left out of the description.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

import oracledb

from audit_trigger.configs.config import DATE_DISPLAY_WIDTH, DATE_FORMAT
from audit_trigger.configs.exceptions import CatalogError
from audit_trigger.models.models import ColumnDescriptor, TableDescription
from audit_trigger.utils.identifiers import split_qualified_name

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Catalog queries
# ---------------------------------------------------------------------------
_COLUMN_FIELDS = """
    COLUMN_NAME,
    DATA_TYPE,
    DATA_LENGTH,
    DATA_PRECISION,
    DATA_SCALE,
    NULLABLE,
    COLUMN_ID"""

_USER_COLUMNS_SQL = f"""
SELECT{_COLUMN_FIELDS}
FROM USER_TAB_COLUMNS
WHERE TABLE_NAME = :table_name
  AND COLUMN_ID IS NOT NULL
ORDER BY COLUMN_ID
"""

_ALL_COLUMNS_SQL = f"""
SELECT{_COLUMN_FIELDS}
FROM ALL_TAB_COLUMNS
WHERE OWNER = :owner
  AND TABLE_NAME = :table_name
  AND COLUMN_ID IS NOT NULL
ORDER BY COLUMN_ID
"""

_USER_COMMENTS_SQL = """
SELECT COLUMN_NAME, COMMENTS
FROM USER_COL_COMMENTS
WHERE TABLE_NAME = :table_name
"""

_ALL_COMMENTS_SQL = """
SELECT COLUMN_NAME, COMMENTS
FROM ALL_COL_COMMENTS
WHERE OWNER = :owner
  AND TABLE_NAME = :table_name
"""

_USER_OBJECT_SQL = """
SELECT COUNT(*)
FROM USER_OBJECTS
WHERE OBJECT_NAME = :object_name
  AND OBJECT_TYPE = :object_type
"""

_ALL_OBJECT_SQL = """
SELECT COUNT(*)
FROM ALL_OBJECTS
WHERE OWNER = :owner
  AND OBJECT_NAME = :object_name
  AND OBJECT_TYPE = :object_type
"""

_NOT_NULL_RE = re.compile(r"^\s*(n|not\s+null)\s*$", re.IGNORECASE)
_DATE_RE = re.compile(r"date", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def describe_table(
    connection,
    table_name: str,
    columns: Iterable[str] | None = None,
) -> TableDescription:
    """
    Read column metadata for ``table_name`` in catalog order.

    Args:
        connection: Open ``oracledb`` connection (or any compatible mock).
        table_name: ``TABLE`` or ``SCHEMA.TABLE``; case-insensitive.
        columns:    Optional subset of column names to keep (case-insensitive).

    Returns:
        ``TableDescription`` whose ``columns`` are ordered by ``sequence``.

    Raises:
        CatalogError: If ``connection`` is missing or ``table_name`` is empty
                      (checked before any query), or if a catalog query fails.
    """
    owner, name = _check_args(connection, table_name, "describe_table")
    qualified = f"{owner}.{name}" if owner else name
    wanted = {c.strip().upper() for c in columns} if columns else None

    if owner:
        column_sql, comment_sql = _ALL_COLUMNS_SQL, _ALL_COMMENTS_SQL
        params = {"owner": owner, "table_name": name}
    else:
        column_sql, comment_sql = _USER_COLUMNS_SQL, _USER_COMMENTS_SQL
        params = {"table_name": name}

    try:
        with connection.cursor() as cursor:
            cursor.execute(column_sql, params)
            column_rows = cursor.fetchall()
            cursor.execute(comment_sql, params)
            comment_rows = cursor.fetchall()
    except oracledb.Error as e:
        raise CatalogError(f"Failed to read column metadata: {e}", object_name=qualified) from e

    comments = {
        col_name.lower(): (text or "")
        for col_name, text in comment_rows
        if col_name
    }

    descriptors = []
    for row in column_rows:
        if row[6] is None:  # COLUMN_ID of an invisible column
            continue
        col = _to_descriptor(row, comments)
        if wanted is None or col.name in wanted:
            descriptors.append(col)
    descriptors.sort(key=lambda c: c.sequence)

    logger.debug("Described %s: %d column(s)", qualified, len(descriptors))
    return TableDescription(table_name=qualified, columns=descriptors, comments=comments)


def object_exists(connection, object_name: str, object_type: str = "TABLE") -> bool:
    """
    Return True if ``object_name`` of ``object_type`` exists.

    Args:
        connection:  Open ``oracledb`` connection (or any compatible mock).
        object_name: ``NAME`` (current user) or ``SCHEMA.NAME``.
        object_type: Catalog ``OBJECT_TYPE`` (``TABLE``, ``TRIGGER``, ``VIEW`` ...).

    Raises:
        CatalogError: If ``connection`` is missing, ``object_name`` is empty,
                      or the catalog query fails.
    """
    owner, name = _check_args(connection, object_name, "object_exists")
    params = {"object_name": name, "object_type": (object_type or "TABLE").upper()}
    sql = _USER_OBJECT_SQL
    if owner:
        sql = _ALL_OBJECT_SQL
        params["owner"] = owner

    try:
        with connection.cursor() as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
    except oracledb.Error as e:
        raise CatalogError(f"Failed to look up object: {e}", object_name=object_name) from e

    return row is not None and row[0] > 0


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _check_args(connection, name: str, caller: str) -> tuple[str | None, str]:
    if connection is None:
        raise CatalogError(f"{caller}: no database connection.")
    if not name or not name.strip():
        raise CatalogError(f"{caller}: object name is empty.")
    owner, obj = split_qualified_name(name)
    if not obj:
        raise CatalogError(f"{caller}: object name is empty.", object_name=name)
    return (owner.upper() if owner else None), obj.upper()


def _to_descriptor(row: tuple, comments: dict[str, str]) -> ColumnDescriptor:
    """
    Build a ``ColumnDescriptor`` from one ``*_TAB_COLUMNS`` row.

    Numeric columns (non-zero precision) take width from precision and keep
    the catalog scale; everything else uses the declared length.  Date
    columns are then forced to the fixed display width and format.
    """
    (col_name, data_type, data_length, data_precision,
     data_scale, nullable, column_id) = row

    if data_precision:
        width, scale = int(data_precision), (int(data_scale) if data_scale is not None else 0)
    else:
        width, scale = int(data_length or 0), None

    date_format = ""
    if data_type and _DATE_RE.search(data_type):
        width = DATE_DISPLAY_WIDTH
        date_format = DATE_FORMAT

    return ColumnDescriptor(
        name=col_name.upper(),
        sequence=int(column_id) - 1,
        sql_type=data_type or "",
        width=width,
        decimal_scale=scale,
        nullable=not _NOT_NULL_RE.match(nullable or ""),
        date_format=date_format,
        comment=comments.get(col_name.lower(), ""),
    )
