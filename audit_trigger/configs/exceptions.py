"""
Custom exceptions for the Oracle audit trigger generator.

Hierarchy:
    AuditTriggerError
    ├── CatalogError           Bad arguments to, or DB failure during, catalog introspection.
    ├── IdentifierError        A table, trigger or column name is not a plain Oracle identifier.
    ├── StatementError         A generated DDL statement was rejected by the database.
    └── OracleConnectionError  A connection could not be obtained.

"Nothing to do" outcomes (missing inputs, missing source table) are not
exceptions — ``prepare`` returns an empty ``PreparedDDL`` for those.
"""

from __future__ import annotations


class AuditTriggerError(Exception):
    """Base class for all audit trigger errors."""


class CatalogError(AuditTriggerError):
    """
    Raised when a catalog lookup cannot be performed.

    Args:
        message: Human-readable description of the failure.
        object_name: The table or object being looked up, if known.
    """

    def __init__(self, message: str, object_name: str | None = None) -> None:
        super().__init__(message)
        self.object_name = object_name

    def __str__(self) -> str:
        base = super().__str__()
        if self.object_name:
            return f"{base} | object={self.object_name}"
        return base


class IdentifierError(AuditTriggerError, ValueError):
    """
    Raised when a name would be interpolated into DDL but is not a valid
    unquoted Oracle identifier.

    Args:
        message: Human-readable description.
        identifier: The offending name.
    """

    def __init__(self, message: str, identifier: str | None = None) -> None:
        super().__init__(message)
        self.identifier = identifier


class StatementError(AuditTriggerError):
    """
    Raised when the database rejects a DDL statement.

    Args:
        message: Human-readable description.
        ddl: The DDL statement that caused the failure, if available.
    """

    def __init__(self, message: str, ddl: str | None = None) -> None:
        super().__init__(message)
        self.ddl = ddl

    def __str__(self) -> str:
        base = super().__str__()
        if self.ddl:
            return f"{base} | ddl={self.ddl!r}"
        return base


class OracleConnectionError(AuditTriggerError):
    """Raised when a connection string is malformed or the connection fails."""
