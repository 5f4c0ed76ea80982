"""
Identifier helpers for DDL generation.

Every table, trigger and column name is interpolated into generated DDL as
plain text (no quoting).  These helpers are the boundary that keeps those
names to plain, unquoted Oracle identifiers: upper-cased, starting with a
letter, containing only ``A-Z``, ``0-9``, ``_``, ``$`` and ``#``.

Unlike a sanitizer, nothing is rewritten here — the names refer to objects
that already exist (or are about to be created from them), so an invalid
name is rejected with ``IdentifierError`` instead of being "fixed".

Length: names generated here (``AUD$<TABLE>``, ``TRG$<TABLE>``, overrides) must fit
``oracle_max_identifier_len``; names read back from the catalog only need to
fit Oracle's extended limit, since the database already accepted them.

Usage:
    from audit_trigger.utils.identifiers import to_object_name

    to_object_name("scott.emp", cfg)      # → "SCOTT.EMP"
    to_object_name("emp; drop", cfg)      # → IdentifierError
"""

from __future__ import annotations

import re

from audit_trigger.configs.config import ORACLE_MAX_IDENTIFIER_LEN_EXTENDED, TriggerConfig
from audit_trigger.configs.exceptions import IdentifierError

_IDENTIFIER_RE = re.compile(r"^[A-Z][A-Z0-9_$#]*$")


def split_qualified_name(name: str) -> tuple[str | None, str]:
    """
    Split ``SCHEMA.OBJECT`` into ``(schema, object)``.

    Unqualified names return ``(None, name)``.  Surrounding whitespace is
    stripped from both parts; case is left untouched.
    """
    schema, dot, obj = name.strip().partition(".")
    if not dot:
        return None, schema
    return schema.strip() or None, obj.strip()


def validate_identifier(name: str, max_len: int) -> str:
    """
    Upper-case ``name`` and check it is a plain Oracle identifier.

    Args:
        name:    Candidate identifier (single part, no schema prefix).
        max_len: Maximum identifier length for the target database.

    Returns:
        The upper-cased identifier.

    Raises:
        IdentifierError: If ``name`` is empty, too long, or contains
                         characters outside ``A-Z 0-9 _ $ #``.
    """
    if not isinstance(name, str) or not name.strip():
        raise IdentifierError("Identifier is empty.", identifier=name)

    candidate = name.strip().upper()
    if not _IDENTIFIER_RE.match(candidate):
        raise IdentifierError(
            f"'{name}' is not a plain Oracle identifier "
            "(letter first, then letters, digits, _, $ or #).",
            identifier=name,
        )
    if len(candidate) > max_len:
        raise IdentifierError(
            f"'{candidate}' is {len(candidate)} characters; the limit is {max_len}.",
            identifier=name,
        )
    return candidate


def to_object_name(raw: str, config: TriggerConfig, existing: bool = False) -> str:
    """
    Validate a possibly schema-qualified object name.

    Args:
        raw:      ``OBJECT`` or ``SCHEMA.OBJECT``.
        config:   Supplies ``oracle_max_identifier_len``.
        existing: True for names of objects that already exist in the
                  database (the source table).  Those were accepted by Oracle
                  already and are only held to the extended 128-character
                  limit; generated names use the configured limit.

    Returns:
        Upper-cased ``OBJECT`` or ``SCHEMA.OBJECT``.

    Raises:
        IdentifierError: If either part is invalid.
    """
    schema, name = split_qualified_name(raw)
    max_len = ORACLE_MAX_IDENTIFIER_LEN_EXTENDED if existing else config.oracle_max_identifier_len
    obj = validate_identifier(name, max_len)
    if schema is None:
        return obj
    # the schema is an existing user in either case
    return f"{validate_identifier(schema, ORACLE_MAX_IDENTIFIER_LEN_EXTENDED)}.{obj}"


def to_column_name(raw: str) -> str:
    """Validate a catalog column name for use in trigger source text."""
    return validate_identifier(raw, ORACLE_MAX_IDENTIFIER_LEN_EXTENDED)
