"""
Environment configuration loader.

Connection settings can be supplied through environment variables (or
a ``.env`` file, loaded with ``python-dotenv``).  Every variable is
optional; whatever is missing falls back to the defaults applied by
``normalize_settings``.

Supported variables:

* ``MSSQL_URL`` – full connection string or ``mssql://`` URL.
* ``MSSQL_SERVER`` / ``MSSQL_HOST`` – server host name.
* ``MSSQL_PORT`` – TCP port.
* ``MSSQL_DATABASE`` – database name.
* ``MSSQL_USER`` / ``MSSQL_PASSWORD`` – SQL login.
* ``MSSQL_ENCRYPT`` – ``true``/``false``.
* ``MSSQL_TRUST_SERVER_CERTIFICATE`` – ``true``/``false``.
* ``MSSQL_CONNECTION_TIMEOUT`` – login timeout in milliseconds.

Individual variables take precedence over values parsed from
``MSSQL_URL``.  The resulting ``config`` instance can be imported from
``omssql.config``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional
from dotenv import load_dotenv

from .settings import parse_connection_string

load_dotenv()


@dataclass
class Config:
    """Holds environment configuration for the application."""

    MSSQL_URL: Optional[str] = None
    MSSQL_SERVER: Optional[str] = None
    MSSQL_PORT: Optional[int] = None
    MSSQL_DATABASE: Optional[str] = None
    MSSQL_USER: Optional[str] = None
    MSSQL_PASSWORD: Optional[str] = None
    MSSQL_ENCRYPT: Optional[bool] = None
    MSSQL_TRUST_SERVER_CERTIFICATE: Optional[bool] = None
    MSSQL_CONNECTION_TIMEOUT: Optional[int] = None

    def to_settings(self) -> Dict[str, Any]:
        """Settings mapping suitable for ``ConnectionManager(settings=...)``."""
        settings: Dict[str, Any] = parse_connection_string(self.MSSQL_URL) if self.MSSQL_URL else {}
        explicit = {
            'server': self.MSSQL_SERVER,
            'port': self.MSSQL_PORT,
            'database': self.MSSQL_DATABASE,
            'user': self.MSSQL_USER,
            'password': self.MSSQL_PASSWORD,
            'encrypt': self.MSSQL_ENCRYPT,
            'trustServerCertificate': self.MSSQL_TRUST_SERVER_CERTIFICATE,
            'connectionTimeout': self.MSSQL_CONNECTION_TIMEOUT,
        }
        settings.update({k: v for k, v in explicit.items() if v is not None})
        return settings


def _load_env() -> Config:
    """Load configuration from environment variables.

    Raises:
        ValueError: If a numeric variable does not hold an integer.

    Returns:
        Config: A populated configuration dataclass.
    """

    def _int(name: str) -> Optional[int]:
        value = os.environ.get(name)
        if not value:
            return None
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"Environment variable {name} must be an integer, got {value!r}") from None

    def _flag(name: str) -> Optional[bool]:
        value = os.environ.get(name)
        if not value:
            return None
        return value.strip().lower() in ('true', 'yes', '1')

    return Config(
        MSSQL_URL=os.environ.get("MSSQL_URL") or None,
        MSSQL_SERVER=os.environ.get("MSSQL_SERVER") or os.environ.get("MSSQL_HOST") or None,
        MSSQL_PORT=_int("MSSQL_PORT"),
        MSSQL_DATABASE=os.environ.get("MSSQL_DATABASE") or None,
        MSSQL_USER=os.environ.get("MSSQL_USER") or None,
        MSSQL_PASSWORD=os.environ.get("MSSQL_PASSWORD") or None,
        MSSQL_ENCRYPT=_flag("MSSQL_ENCRYPT"),
        MSSQL_TRUST_SERVER_CERTIFICATE=_flag("MSSQL_TRUST_SERVER_CERTIFICATE"),
        MSSQL_CONNECTION_TIMEOUT=_int("MSSQL_CONNECTION_TIMEOUT"),
    )


def load_config() -> Config:
    """Re-read the environment into a fresh ``Config``."""
    return _load_env()


# Create a single configuration instance when this module is imported.
config: Config = _load_env()
