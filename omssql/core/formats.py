"""
Result formats.

A format projects a ``ResultEnvelope`` into the shape a caller actually
wants: a flag, a count, a single value, a list of values, a mapping keyed
by some column, the rows, a single row or the envelope itself.  Every
handler is a plain function registered against a ``QueryFormat`` tag;
none of them modifies the envelope.

Keys follow one rule everywhere.  A positional key (an ``int`` or a
string of digits) names the N-th column; any other key is used as the
column name as is.  Falsy keys mean "the first column".
"""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .result import ResultEnvelope


Sanitizer = Optional[Callable[[Any], Any]]
Handler = Callable[[ResultEnvelope, Any, Any, Sanitizer], Any]


class QueryFormat(str, Enum):
    BOOL = "bool"
    COUNT = "count"
    VALUE = "value"
    VALUES = "values"
    VALUES_BY_ID = "valuesById"
    ARRAY = "array"
    ARRAY_BY_ID = "arrayById"
    ROW_STRICT = "rowStrict"
    ROW = "row"
    DEFAULT = "default"


ALLOWED_QUERY_FORMATS: List[str] = [f.value for f in QueryFormat]


def validate(fmt: Any, sanitizer: Any = None, caller: str = "query") -> Optional[Dict[str, Any]]:
    """Return the usage-error payload for a bad format or sanitizer, else ``None``."""
    if fmt not in ALLOWED_QUERY_FORMATS:
        return {
            "msg": f"{caller}: format is not allowed: {fmt}",
            "allowed_formats": list(ALLOWED_QUERY_FORMATS),
        }
    if sanitizer is not None and sanitizer is not False and not callable(sanitizer):
        sanitizer_type = type(sanitizer).__name__
        return {
            "msg": f"{caller}: sanitizer must be a function, not a {sanitizer_type}.",
            "sanitizer_type": sanitizer_type,
        }
    return None


def project(
    envelope: ResultEnvelope,
    fmt: Any = QueryFormat.DEFAULT,
    value_key: Any = 0,
    value_id: Any = 0,
    sanitizer: Sanitizer = None,
) -> Any:
    """Shape ``envelope`` according to ``fmt``.

    ``fmt`` must already be valid (see ``validate``).  Failed envelopes
    are returned as is for the default format and as ``False`` otherwise.
    """
    if not envelope.status:
        return envelope if fmt == QueryFormat.DEFAULT else False
    handler = _HANDLERS[QueryFormat(fmt)]
    return handler(envelope, value_key or 0, value_id or 0, sanitizer or None)


def is_positional(key: Any) -> bool:
    if isinstance(key, bool):
        return False
    if isinstance(key, int):
        return True
    return isinstance(key, str) and key.isdecimal()


def _apply(sanitizer: Sanitizer, value: Any) -> Any:
    return sanitizer(value) if sanitizer else value


def _sanitize_row(row: Dict[str, Any], sanitizer: Sanitizer) -> Dict[str, Any]:
    if not sanitizer:
        return copy.deepcopy(row)
    return {key: sanitizer(value) for key, value in row.items()}


def _row_value(row: Dict[str, Any], key: Any) -> Any:
    if is_positional(key):
        keys = list(row.keys())
        position = int(key)
        return row[keys[position]] if 0 <= position < len(keys) else None
    return row.get(key)


def _column_name(envelope: ResultEnvelope, key: Any) -> str:
    """Resolve a key to a column name, defaulting to ``'id'``."""
    if is_positional(key):
        position = int(key)
        if envelope.columns:
            names = [c.name for c in envelope.columns]
        elif envelope.rows:
            names = list(envelope.rows[0].keys())
        else:
            names = []
        key = names[position] if 0 <= position < len(names) else "id"
    if not isinstance(key, str):
        key = "id"
    return key


def _row_at(envelope: ResultEnvelope, position: Any) -> Dict[str, Any]:
    index = int(position) if is_positional(position) else 0
    return envelope.rows[index] if 0 <= index < len(envelope.rows) else {}


def _bool(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    return _apply(sanitizer, bool(envelope.count))


def _count(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    return _apply(sanitizer, envelope.count)


def _value(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    row = envelope.rows[0] if envelope.rows else {}
    return _apply(sanitizer, _row_value(row, value_key))


def _values(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    return [_apply(sanitizer, _row_value(row, value_key)) for row in envelope.rows]


def _values_by_id(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    id_key = _column_name(envelope, value_id)
    values: Dict[Any, Any] = {}
    for row in envelope.rows:
        if id_key not in row:
            continue
        values[row[id_key]] = _apply(sanitizer, _row_value(row, value_key))
    return values


def _array(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    return [_sanitize_row(row, sanitizer) for row in envelope.rows]


def _array_by_id(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    key = _column_name(envelope, value_key)
    rows: Dict[Any, Dict[str, Any]] = {}
    for row in envelope.rows:
        if key not in row:
            continue
        rows[row[key]] = _sanitize_row(row, sanitizer)
    return rows


def _row_strict(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    row = _row_at(envelope, value_key)
    strict: Dict[str, Any] = {}
    for key, value in row.items():
        value = _apply(sanitizer, value)
        if not value:
            continue
        strict[key] = value
    return strict


def _row(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    return _sanitize_row(_row_at(envelope, value_key), sanitizer)


def _default(envelope: ResultEnvelope, value_key: Any, value_id: Any, sanitizer: Sanitizer) -> Any:
    return envelope


_HANDLERS: Dict[QueryFormat, Handler] = {
    QueryFormat.BOOL: _bool,
    QueryFormat.COUNT: _count,
    QueryFormat.VALUE: _value,
    QueryFormat.VALUES: _values,
    QueryFormat.VALUES_BY_ID: _values_by_id,
    QueryFormat.ARRAY: _array,
    QueryFormat.ARRAY_BY_ID: _array_by_id,
    QueryFormat.ROW_STRICT: _row_strict,
    QueryFormat.ROW: _row,
    QueryFormat.DEFAULT: _default,
}
