"""
Connection settings for SQL Server.

``normalize_settings`` resolves the mapping a ``ConnectionManager`` is
built with: defaults are filled in, ``host`` is folded into ``server``,
the ``encrypt`` and ``trustServerCertificate`` flags move under
``options`` and ``arrayRowMode`` is always switched on so the driver
hands rows back as positional tuples.

``parse_connection_string`` accepts either ``mssql://`` URLs or the
usual semicolon separated ``Key=Value`` pairs, e.g.::

    Server=db.local,1433;Database=sales;User Id=sa;Password=secret;Encrypt=no
"""

from __future__ import annotations

import copy
import re
from typing import Any, Dict, Mapping, Optional
from urllib.parse import parse_qs, unquote, urlparse


DEFAULT_SETTINGS: Dict[str, Any] = {
    'server': 'localhost',
    'port': 1433,
    'database': None,
    'user': 'sa',
    'password': '',
}

_TRUE_VALUES = ('true', 'yes', '1')


def normalize_settings(raw: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Build the settings used to open a pool from caller-supplied options.

    Args:
        raw: Caller options. Anything that is not a mapping counts as empty.

    Returns:
        A new dictionary; ``raw`` is never modified.
    """
    settings: Dict[str, Any] = copy.deepcopy(dict(raw)) if isinstance(raw, Mapping) else {}

    if 'host' in settings:
        settings['server'] = settings.pop('host')

    for flag in ('encrypt', 'trustServerCertificate'):
        if flag in settings:
            if not isinstance(settings.get('options'), dict):
                settings['options'] = {}
            settings['options'][flag] = settings.pop(flag)

    resolved = dict(DEFAULT_SETTINGS)
    resolved.update(settings)
    resolved['arrayRowMode'] = True
    return resolved


def redact_settings(settings: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of ``settings`` with passwords masked by ``*`` of the same length."""
    info = copy.deepcopy(dict(settings))
    if info.get('password'):
        info['password'] = _mask(info['password'])
    parameters = info.get('parameters')
    if isinstance(parameters, dict) and parameters.get('password'):
        parameters['password'] = _mask(parameters['password'])
    return info


def _mask(secret: Any) -> str:
    return '*' * len(str(secret))


def _as_bool(value: Optional[str], default: bool = True) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def parse_connection_string(input_str: str) -> Dict[str, Any]:
    """Parse a SQL Server connection string into settings.

    The result contains ``server``, ``port``, ``user``, ``password``,
    ``database``, ``encrypt`` and ``trustServerCertificate``; keys whose
    value is absent from the string are left out.

    Raises:
        ValueError: If the string is empty or names no server.
    """
    s = (input_str or "").strip()
    if not s:
        raise ValueError("Empty connection string")
    norm = re.sub(r"^sqlserver://", "mssql://", s, flags=re.IGNORECASE)
    if norm.lower().startswith("mssql://"):
        return _parse_url(norm)

    parts = [p.strip() for p in norm.split(";") if p.strip()]
    kv: Dict[str, str] = {}
    for p in parts:
        if '=' not in p:
            continue
        k, v = p.split('=', 1)
        kv[k.strip().lower()] = v.strip()
    server_raw = kv.get('server') or kv.get('data source') or kv.get('address') or kv.get('addr') or kv.get('network address')
    if not server_raw:
        raise ValueError('No Server= found in connection string')
    server = re.sub(r"^tcp:", "", server_raw, flags=re.IGNORECASE)
    port: Optional[int] = None
    m = re.match(r"^(.*?),(\d+)$", server)
    if m:
        server = m.group(1)
        port = int(m.group(2))
    parsed = {
        'server': server,
        'port': port,
        'user': kv.get('uid') or kv.get('user id') or kv.get('user'),
        'password': kv.get('pwd') or kv.get('password'),
        'database': kv.get('database') or kv.get('initial catalog'),
        'encrypt': _as_bool(kv.get('encrypt')),
        'trustServerCertificate': _as_bool(kv.get('trustservercertificate') or kv.get('trust server certificate')),
    }
    return {k: v for k, v in parsed.items() if v is not None}


def _parse_url(url: str) -> Dict[str, Any]:
    parsed = urlparse(url)
    if not parsed.hostname:
        raise ValueError('No server found in connection URL')
    query = {k.lower(): v[-1] for k, v in parse_qs(parsed.query).items()}
    database = unquote(parsed.path.lstrip('/')) or query.get('database')
    result = {
        'server': parsed.hostname,
        'port': parsed.port,
        'user': unquote(parsed.username) if parsed.username else None,
        'password': unquote(parsed.password) if parsed.password else None,
        'database': database or None,
        'encrypt': _as_bool(query.get('encrypt')),
        'trustServerCertificate': _as_bool(query.get('trustservercertificate')),
    }
    return {k: v for k, v in result.items() if v is not None}
