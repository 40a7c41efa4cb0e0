from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class RealClock:
    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        base = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        if base.tzinfo is None:
            base = base.replace(tzinfo=timezone.utc)
        self._current = base

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float) -> None:
        self._current += timedelta(seconds=max(0.0, seconds))


def timestamp_ms(clock: Clock) -> int:
    return int(clock.now().timestamp() * 1000)
