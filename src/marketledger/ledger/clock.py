"""Monotonic ledger clocks (integer seconds)."""

from __future__ import annotations

import time
from threading import Lock
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock seconds, clamped so readings never go backwards."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = Lock()

    def now(self) -> int:
        with self._lock:
            self._last = max(self._last, int(time.time()))
            return self._last


class ManualClock:
    """Caller-driven clock for tests, simulations and replay."""

    def __init__(self, start: int = 0) -> None:
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def set(self, ts: int) -> None:
        if ts < self._now:
            raise ValueError(f"Clock cannot move backwards ({ts} < {self._now})")
        self._now = int(ts)

    def advance(self, seconds: int) -> int:
        self.set(self._now + seconds)
        return self._now


class ReplayClock(ManualClock):
    """Driven by logged timestamps during replay, then switched to wall time."""

    def __init__(self, start: int = 0) -> None:
        super().__init__(start)
        self._live = False

    @property
    def live(self) -> bool:
        return self._live

    def go_live(self) -> None:
        self._live = True

    def now(self) -> int:
        if self._live:
            self._now = max(self._now, int(time.time()))
        return self._now
