"""
Database access for SQL Server.

This subpackage wraps either the ``pymssql`` or ``pyodbc`` libraries.
It exposes a ``connect`` function that returns a pool object with
``query`` and ``close`` methods, the contract ``ConnectionManager``
relies on.
"""

from .mssql import (  # noqa: F401
    ConnectError,
    DriverError,
    Pool,
    RawResult,
    RequestError,
    connect,
)
