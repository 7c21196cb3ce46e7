"""
Result envelope returned for every executed statement.

A ``ResultEnvelope`` holds the outcome of one statement: the success
flag, the affected/returned row count, the SQL text, the column
metadata, the rows (each a mapping from column name to value) and an
optional error payload.  Envelopes are stored in the manager's query
history; readers get independent copies through ``clone``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterator, List, Optional


SQL_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class Column:
    """Column descriptor as reported by the driver."""

    name: str
    index: int
    type: Any = None


@dataclass
class ResultEnvelope:
    """Outcome of a single statement.

    The envelope behaves as a read-only sequence of its rows, so
    ``len(result)``, ``result[0]`` and ``for row in result`` all work on
    ``rows`` directly.
    """

    statement: str
    status: Optional[bool] = None
    count: int = 0
    columns: List[Column] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return self.rows[index]

    def fail(self, error: Dict[str, Any]) -> None:
        """Mark the envelope as failed with the given error payload."""
        self.status = False
        self.error = error

    def clone(self) -> "ResultEnvelope":
        """Return a structural deep copy of this envelope."""
        return ResultEnvelope(
            statement=self.statement,
            status=self.status,
            count=self.count,
            columns=copy.deepcopy(self.columns),
            rows=copy.deepcopy(self.rows),
            error=copy.deepcopy(self.error) if self.error is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": self.status,
            "count": self.count,
            "statement": self.statement,
            "columns": [{"name": c.name, "index": c.index} for c in self.columns],
            "rows": copy.deepcopy(self.rows),
        }
        if self.error is not None:
            data["error"] = {k: v for k, v in self.error.items() if k != "sql"}
        return data


def to_sql_datetime(value: Any) -> Any:
    """Render date values as ``YYYY-MM-DD HH:MM:SS``; pass anything else through."""
    if isinstance(value, datetime):
        return value.strftime(SQL_DATETIME_FORMAT)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).strftime(SQL_DATETIME_FORMAT)
    return value
