"""
Step timer for measuring how long each connection phase takes.

Calling ``step(name)`` closes the previous step and opens a new one;
``get_times()`` reports elapsed milliseconds per step plus the total.
"""

from __future__ import annotations

import time
from typing import Dict, Optional


class StepTimer:
    def __init__(self) -> None:
        self._start = time.perf_counter()
        self._current: Optional[str] = None
        self._current_start = self._start
        self._times: Dict[str, float] = {}

    def step(self, name: str) -> None:
        now = time.perf_counter()
        self._close_current(now)
        self._current = name
        self._current_start = now

    def get_times(self) -> Dict[str, float]:
        now = time.perf_counter()
        times = dict(self._times)
        if self._current is not None:
            times[self._current] = times.get(self._current, 0.0) + (now - self._current_start) * 1000
        times["total"] = (now - self._start) * 1000
        return times

    def _close_current(self, now: float) -> None:
        if self._current is None:
            return
        elapsed = (now - self._current_start) * 1000
        self._times[self._current] = self._times.get(self._current, 0.0) + elapsed
