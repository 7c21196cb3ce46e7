"""
SQL Server driver adapter.

``ConnectionManager`` talks to the database through a very small
contract: ``connect(settings)`` returns a pool, ``pool.query(sql)``
returns a ``RawResult`` and ``pool.close()`` releases it.  This module
implements that contract on top of ``pymssql``, falling back to
``pyodbc`` when ``pymssql`` is not installed.  If neither driver is
available ``connect`` raises an ``ImportError``.

Driver exceptions are re-raised as ``ConnectError`` (opening the
connection) or ``RequestError`` (running a statement).  Their message
is the human readable part of the driver error, and ``code`` carries
the SQL Server error number (pymssql) or SQLSTATE (pyodbc).

Example usage::

    from omssql.infra.db import connect
    pool = connect({'server': 'localhost', 'user': 'sa', 'password': '...'})
    raw = pool.query("SELECT 1 AS ok")
    pool.close()
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from ...core.result import Column


class DriverError(Exception):
    """Base class for errors raised by the driver adapter."""

    def __init__(self, message: str, code: Any = None) -> None:
        super().__init__(message)
        self.code = code


class ConnectError(DriverError):
    """The pool could not be opened."""


class RequestError(DriverError):
    """The server rejected a statement."""


@dataclass
class RawResult:
    """What a pool hands back for one statement.

    ``columns`` holds one list of descriptors per result set,
    ``recordset`` the rows of the first result set as positional tuples
    and ``rows_affected`` the affected/returned row count per statement.
    """

    columns: List[List[Column]] = field(default_factory=list)
    recordset: Optional[List[Tuple[Any, ...]]] = None
    rows_affected: List[int] = field(default_factory=list)


class PoolProtocol(Protocol):
    def query(self, sql: str) -> RawResult:
        ...

    def close(self) -> None:
        ...


class DriverProtocol(Protocol):
    def connect(self, settings: Mapping[str, Any]) -> PoolProtocol:
        ...


def _driver_message(err: BaseException) -> Tuple[str, Any]:
    """Extract ``(message, code)`` from a pymssql or pyodbc exception.

    pymssql raises with a single ``(number, text)`` tuple as its only
    argument (a tuple of such pairs when DB-Lib reports several);
    pyodbc raises with ``(sqlstate, text)`` as two arguments.
    """
    args = getattr(err, 'args', ())
    if len(args) == 1 and isinstance(args[0], tuple):
        args = args[0]
        if args and isinstance(args[0], tuple):
            args = args[0]
    if len(args) >= 2 and isinstance(args[0], (int, str)):
        code, raw = args[0], args[1]
        text = raw.decode('utf-8', 'replace') if isinstance(raw, bytes) else str(raw)
        return _server_text(text), code
    return str(err), getattr(err, 'code', None)


def _server_text(text: str) -> str:
    # pymssql appends DB-Lib boilerplate after the server message, or
    # starts with it when the failure is client side
    head = text.split('DB-Lib error message')[0].strip()
    if head:
        return head
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line and not line.startswith('DB-Lib error message')]
    return lines[0] if lines else text.strip()


class Pool:
    """Lightweight wrapper around a DB-API connection.

    Instances are returned by ``connect``.  The connection runs in
    autocommit mode; each ``query`` uses its own cursor.
    """

    def __init__(self, conn: Any, driver: str) -> None:
        self._conn = conn
        self._driver = driver

    @property
    def driver(self) -> str:
        return self._driver

    def query(self, sql: str) -> RawResult:
        """Execute ``sql`` and collect column metadata and rows.

        Raises:
            RequestError: If the driver rejects the statement.
        """
        cursor = self._conn.cursor()
        try:
            try:
                cursor.execute(sql)
                description = cursor.description
                rows = [tuple(row) for row in cursor.fetchall()] if description else None
            except Exception as err:
                message, code = _driver_message(err)
                raise RequestError(message, code) from err
            columns = [
                Column(name=col[0], index=i, type=col[1])
                for i, col in enumerate(description or [])
            ]
            rowcount = cursor.rowcount if cursor.rowcount is not None else -1
            if rowcount < 0:
                rowcount = len(rows) if rows is not None else 0
            return RawResult(
                columns=[columns] if columns else [],
                recordset=rows,
                rows_affected=[rowcount],
            )
        finally:
            cursor.close()

    def close(self) -> None:
        self._conn.close()


# pymssql.connect keywords copied from settings as is
PYMSSQL_PASSTHROUGH = (
    'appname',
    'arraysize',
    'charset',
    'conn_properties',
    'encryption',
    'read_only',
    'tds_version',
    'timeout',
    'use_datetime2',
)


def _pymssql_kwargs(settings: Mapping[str, Any], timeout: Optional[int]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        'server': settings.get('server'),
        'user': settings.get('user'),
        'password': settings.get('password'),
        'port': settings.get('port') or 1433,
        'autocommit': True,
    }
    if settings.get('database'):
        kwargs['database'] = settings.get('database')
    if timeout:
        kwargs['login_timeout'] = timeout
    for key in PYMSSQL_PASSTHROUGH:
        if settings.get(key) is not None:
            kwargs[key] = settings[key]
    return kwargs


def _login_timeout(settings: Mapping[str, Any]) -> Optional[int]:
    timeout_ms = settings.get('connectionTimeout')
    if not timeout_ms:
        return None
    return max(1, int(math.ceil(int(timeout_ms) / 1000)))


def _odbc_connection_string(settings: Mapping[str, Any]) -> str:
    options: Dict[str, Any] = settings.get('options') or {}
    driver = settings.get('odbcDriver') or 'ODBC Driver 18 for SQL Server'
    server = settings.get('server')
    port = settings.get('port')
    encrypt = options.get('encrypt', True)
    trust = options.get('trustServerCertificate', False)
    server_expr = f"{server},{port}" if port else server
    conn_str = (
        f"DRIVER={{{driver}}};"
        f"SERVER={server_expr};"
        f"UID={settings.get('user')};PWD={settings.get('password')};"
        f"Encrypt={'yes' if encrypt else 'no'};"
        f"TrustServerCertificate={'yes' if trust else 'no'};"
    )
    if settings.get('database'):
        conn_str += f"DATABASE={settings.get('database')};"
    return conn_str


def _load_driver() -> Tuple[str, Any]:
    try:
        import pymssql  # type: ignore[import]
        return 'pymssql', pymssql
    except ImportError:
        pass
    try:
        import pyodbc  # type: ignore[import]
        return 'pyodbc', pyodbc
    except ImportError:
        raise ImportError(
            "Neither pymssql nor pyodbc is installed. Install one of them to connect to SQL Server."
        ) from None


def connect(settings: Mapping[str, Any]) -> Pool:
    """Open a connection to SQL Server.

    Args:
        settings: Normalised settings (see ``omssql.config.normalize_settings``).

    Returns:
        A ``Pool`` exposing ``query`` and ``close``.

    Raises:
        ImportError: If no supported driver is installed.
        ConnectError: If the driver fails to connect.
    """
    name, module = _load_driver()
    timeout = _login_timeout(settings)
    try:
        if name == 'pymssql':
            conn = module.connect(**_pymssql_kwargs(settings, timeout))
        else:
            conn = module.connect(_odbc_connection_string(settings), autocommit=True, timeout=timeout or 0)
    except Exception as err:
        message, code = _driver_message(err)
        raise ConnectError(message, code) from err
    return Pool(conn, name)
