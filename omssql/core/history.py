"""
Query history kept by a ``ConnectionManager``.

Entries are stored newest first.  Every accessor hands out clones
unless ``raw`` is requested, so callers cannot alter what was recorded.
"""

from __future__ import annotations

from typing import List, Optional

from .result import ResultEnvelope


class QueryHistory:
    """Prepend-only list of executed statements, newest at index 0."""

    def __init__(self) -> None:
        self._entries: List[ResultEnvelope] = []

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, envelope: ResultEnvelope) -> None:
        self._entries.insert(0, envelope)

    @property
    def last(self) -> Optional[ResultEnvelope]:
        """The most recent envelope itself (not a copy), or ``None``."""
        return self._entries[0] if self._entries else None

    def get(self, offset: int = 0, raw: bool = False) -> Optional[ResultEnvelope]:
        """Return the entry ``offset`` steps back from the most recent one."""
        return self._pick(offset, raw)

    def get_from_end(self, offset: int = 0, raw: bool = False) -> Optional[ResultEnvelope]:
        """Return the entry ``offset`` steps forward from the oldest one."""
        return self._pick(len(self._entries) - offset - 1, raw) if offset >= 0 else None

    def get_all(self, raw: bool = False) -> List[ResultEnvelope]:
        if raw:
            return self._entries
        return [entry.clone() for entry in self._entries]

    def _pick(self, index: int, raw: bool) -> Optional[ResultEnvelope]:
        if index < 0 or index >= len(self._entries):
            return None
        entry = self._entries[index]
        return entry if raw else entry.clone()
