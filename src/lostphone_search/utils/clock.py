"""Clock abstraction for date windows and cache expiry."""

import time
from datetime import datetime, timedelta


class SystemClock:
    """Wall clock for date windows, monotonic clock for expiry."""

    def now(self) -> datetime:
        return datetime.now()

    def monotonic(self) -> float:
        return time.monotonic()


class ManualClock:
    """Clock that only moves when told to; used by tests and replays."""

    def __init__(self, start: datetime = None):
        self._now = start or datetime(2024, 6, 15, 12, 0, 0)
        self._elapsed = 0.0

    def now(self) -> datetime:
        return self._now

    def monotonic(self) -> float:
        return self._elapsed

    def advance(self, seconds: float) -> None:
        self._elapsed += seconds
        self._now += timedelta(seconds=seconds)
