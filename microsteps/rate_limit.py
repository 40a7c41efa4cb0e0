from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from threading import Lock
from typing import MutableMapping

from .clock import Clock, RealClock
from .errors import RateLimitError


logger = logging.getLogger(__name__)


@dataclass
class RateWindow:
    count: int
    reset_at: datetime


class RateLimiter:
    """Fixed-window request counter keyed by caller id."""

    def __init__(
        self,
        limit: int,
        window_seconds: float = 60.0,
        clock: Clock | None = None,
        storage: MutableMapping[str, RateWindow] | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self.limit = limit
        self.window = timedelta(seconds=window_seconds)
        self.clock = clock or RealClock()
        self._windows: MutableMapping[str, RateWindow] = storage if storage is not None else {}
        self._lock = Lock()

    def allow(self, key: str) -> bool:
        now = self.clock.now()
        with self._lock:
            record = self._windows.get(key)
            if record is None or now > record.reset_at:
                # Expired windows are dropped whenever a new one opens.
                for stale in [name for name, window in self._windows.items() if now > window.reset_at]:
                    del self._windows[stale]
                self._windows[key] = RateWindow(count=1, reset_at=now + self.window)
                return True
            if record.count >= self.limit:
                return False
            record.count += 1
            return True

    def hit(self, key: str) -> None:
        if not self.allow(key):
            logger.warning("RATE_LIMITED key=%s limit=%s", key, self.limit)
            raise RateLimitError()
