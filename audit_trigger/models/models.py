"""
Core data models for audit trigger generation.

ColumnDescriptor  — catalog metadata for a single source-table column.
TableDescription  — ordered column descriptors plus the comment lookup for one table.

Column order
------------
``ColumnDescriptor.sequence`` is the 0-based catalog position
(``COLUMN_ID - 1``).  It is the only ordering used when emitting column
lists into DDL; nothing re-sorts columns after they are read.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ColumnDescriptor:
    """
    Catalog metadata for a single column.

    Attributes:
        name:          Upper-cased column name.
        sequence:      0-based ordinal position in the table.
        sql_type:      Catalog ``DATA_TYPE`` (``DATE``, ``NUMBER``, ``VARCHAR2`` ...).
        width:         Precision for numeric columns, declared length otherwise,
                       17 for date columns.
        decimal_scale: Catalog scale for numeric columns, else ``None``.
        nullable:      False when the catalog marks the column NOT NULL.
        date_format:   ``YYYYMMDD.HH24MISS`` for date columns, else ``""``.
        comment:       Catalog column comment, ``""`` if none.
    """

    name: str
    sequence: int
    sql_type: str
    width: int = 0
    decimal_scale: int | None = None
    nullable: bool = True
    date_format: str = ""
    comment: str = ""

    @property
    def is_date(self) -> bool:
        return bool(self.date_format)


@dataclass
class TableDescription:
    """
    Result of ``describe_table``.

    Attributes:
        table_name: Upper-cased table name as queried (may be ``SCHEMA.TABLE``).
        columns:    ``ColumnDescriptor`` list in ``sequence`` order.
        comments:   Column comments keyed by lower-cased column name.
    """

    table_name: str
    columns: list[ColumnDescriptor] = field(default_factory=list)
    comments: dict[str, str] = field(default_factory=dict)

    @property
    def column_names(self) -> list[str]:
        """Column names in ``sequence`` order."""
        return [c.name for c in self.columns]

    @property
    def column_list(self) -> str:
        """Comma-joined column names, e.g. ``ID,NAME,CREATED_ON``."""
        return ",".join(self.column_names)

    @property
    def by_name(self) -> dict[str, ColumnDescriptor]:
        """Name-indexed view of ``columns``."""
        return {c.name: c for c in self.columns}
