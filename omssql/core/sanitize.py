"""
Literal escaping for SQL Server statements.

``sanitize`` turns a Python value into a T-SQL literal: ``NULL`` for
``None``, ``1``/``0`` for booleans, bare numbers, and single-quoted
strings with embedded quotes doubled.  Lists and dicts are stored as
compact JSON text.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any


def sanitize(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, str):
        text = value.replace("\\", "\\\\")
    elif isinstance(value, (dict, list, tuple)):
        text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    else:
        text = str(value)
    text = text.replace("'", "''")
    return f"'{text}'"
