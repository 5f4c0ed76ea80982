"""
Oracle connection management for the audit trigger generator.

``oracledb`` is imported at module level — if it is not installed this
module will fail loudly on import with a clear ``ModuleNotFoundError``.
Install it with:  pip install oracledb

Connection strings use the classic SQL*Plus shape, optionally followed by an
application role that is enabled right after logging in::

    scott/tiger@orclpdb1
    scott/tiger@dbhost:1521/orclpdb1
    scott/tiger@orclpdb1:audit_role/role_secret

Usage:
    from audit_trigger.discovery.oracle_client import connect_string, OracleSession

    # One-shot connection
    conn = connect_string("scott/tiger@orclpdb1")
    conn.close()

    # Context manager (auto-closes)
    with OracleSession(dsn="...", user="...", password="...") as conn:
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM DUAL")
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import oracledb  # hard import, fails loudly if python-oracledb is not installed

from audit_trigger.configs.config import DATE_FORMAT, ORACLE_MAX_IDENTIFIER_LEN_EXTENDED
from audit_trigger.configs.exceptions import OracleConnectionError
from audit_trigger.utils.identifiers import validate_identifier

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Default session settings applied to every new connection
# ---------------------------------------------------------------------------
_SESSION_SQL = [
    # Audit rows carry DATE values; render them in the same fixed format
    # the catalog reader reports for date columns
    f"ALTER SESSION SET NLS_DATE_FORMAT = '{DATE_FORMAT}'",
]

SUPPORTED_KINDS = ("oracle",)

# Trailing ":role/role_password". The role must start with a letter so that
# "host:1521/service" DSNs are not mistaken for a role clause.
_ROLE_SUFFIX_RE = re.compile(r":(?P<role>[A-Za-z][\w$#]*)/(?P<role_password>[^/:@]+)$")


@dataclass(frozen=True)
class ConnectionParams:
    """
    Parsed ``user/password@dsn[:role/role_password]`` connection string.

    Attributes:
        user:          Oracle username.
        password:      Oracle password.
        dsn:           TNS alias or ``host:port/service_name``.
        role:          Optional application role enabled after connecting.
        role_password: Password for ``role``.
    """
    user: str
    password: str
    dsn: str
    role: str | None = None
    role_password: str | None = None

    def __repr__(self) -> str:
        role = f", role={self.role!r}" if self.role else ""
        return f"ConnectionParams(user={self.user!r}, dsn={self.dsn!r}{role})"


def parse_connection_string(conn_string: str) -> ConnectionParams:
    """
    Split a connection string into its parts.

    Raises:
        OracleConnectionError: If the user, password or DSN part is missing.
    """
    if not conn_string or not conn_string.strip():
        raise OracleConnectionError("Connection string is empty.")

    credentials, at, target = conn_string.strip().partition("@")
    user, slash, password = credentials.partition("/")
    if not at or not slash or not user or not password or not target:
        raise OracleConnectionError(
            "Connection string must look like user/password@dsn"
            "[:role/role_password]."
        )

    role = role_password = None
    match = _ROLE_SUFFIX_RE.search(target)
    if match and match.start() > 0:
        role = match.group("role")
        role_password = match.group("role_password")
        target = target[: match.start()]

    if not target:
        raise OracleConnectionError("Connection string has no DSN after '@'.")

    return ConnectionParams(
        user=user,
        password=password,
        dsn=target,
        role=role,
        role_password=role_password,
    )


def connect(
    dsn: str,
    user: str,
    password: str,
    role: str | None = None,
    role_password: str | None = None,
    apply_session_settings: bool = True,
    **kwargs,
):
    """
    Open a new ``oracledb`` connection and apply standard session settings.

    Args:
        dsn:                    Oracle DSN string (``host:port/service_name``).
        user:                   Oracle username.
        password:               Oracle password.
        role:                   Optional application role to enable.
        role_password:          Password for ``role``.
        apply_session_settings: If True, execute ``_SESSION_SQL`` statements
                                immediately after connecting.
        **kwargs:               Additional keyword args forwarded to
                                ``oracledb.connect()``.

    Returns:
        An open ``oracledb.Connection`` object.

    Raises:
        IdentifierError:       If ``role`` is not a plain Oracle identifier
                               (checked before connecting).
        OracleConnectionError: If the role password contains a double quote,
                               or the connection, role or session setup fails.
    """
    if role:
        role = validate_identifier(role, ORACLE_MAX_IDENTIFIER_LEN_EXTENDED)
        if role_password and '"' in role_password:
            raise OracleConnectionError(
                f"Password for role {role} cannot contain a double quote."
            )

    try:
        conn = oracledb.connect(dsn=dsn, user=user, password=password, **kwargs)
    except oracledb.Error as e:
        raise OracleConnectionError(f"Failed to connect to Oracle ({dsn}): {e}") from e

    logger.info("Connected to %s as %s", dsn, user)

    if role:
        _enable_role(conn, role, role_password)

    if apply_session_settings:
        _apply_session(conn)

    return conn


def connect_string(conn_string: str, kind: str = "oracle", **kwargs):
    """
    Parse ``conn_string`` and open a connection.

    Only the Oracle kind is supported.

    Raises:
        OracleConnectionError: On an unsupported kind, a malformed string,
                               or a failed connection.
    """
    if kind.lower() not in SUPPORTED_KINDS:
        raise OracleConnectionError(
            f"Unsupported database kind '{kind}'. Supported: {', '.join(SUPPORTED_KINDS)}"
        )
    params = parse_connection_string(conn_string)
    return connect(
        dsn=params.dsn,
        user=params.user,
        password=params.password,
        role=params.role,
        role_password=params.role_password,
        **kwargs,
    )


def _enable_role(conn, role: str, role_password: str | None) -> None:
    """Activate an application role on an open connection."""
    sql = f"SET ROLE {role}"
    if role_password:
        # quoted: case and special characters are kept as given
        sql += f' IDENTIFIED BY "{role_password}"'
    try:
        with conn.cursor() as cur:
            cur.execute(sql)
    except oracledb.Error as e:
        raise OracleConnectionError(f"Failed to enable role {role}: {e}") from e
    logger.info("Enabled application role %s", role)


def _apply_session(conn) -> None:
    """Execute standard session-level SQL on an open connection."""
    try:
        with conn.cursor() as cur:
            for stmt in _SESSION_SQL:
                cur.execute(stmt)
    except oracledb.Error as e:
        raise OracleConnectionError(f"Failed to apply session settings: {e}") from e


class OracleSession:
    """
    Context manager that opens and closes an Oracle connection.

    Args:
        dsn:      Oracle DSN string.
        user:     Oracle username.
        password: Oracle password.
        **kwargs: Forwarded to ``connect()``.

    Example::

        with OracleSession(dsn="host/svc", user="u", password="p") as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1 FROM DUAL")
    """

    def __init__(self, dsn: str, user: str, password: str, **kwargs) -> None:
        self._dsn = dsn
        self._user = user
        self._password = password
        self._kwargs = kwargs
        self._conn = None

    @classmethod
    def from_string(cls, conn_string: str, **kwargs) -> "OracleSession":
        """Build a session from a ``user/password@dsn[:role/pwd]`` string."""
        params = parse_connection_string(conn_string)
        return cls(
            dsn=params.dsn,
            user=params.user,
            password=params.password,
            role=params.role,
            role_password=params.role_password,
            **kwargs,
        )

    def __enter__(self):
        self._conn = connect(self._dsn, self._user, self._password, **self._kwargs)
        return self._conn

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            except oracledb.Error as e:
                logger.warning("Error closing connection to %s: %s", self._dsn, e)
            self._conn = None
