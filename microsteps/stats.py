from __future__ import annotations

from typing import Any

from .errors import ValidationError
from .models import Stats
from .utils import calculate_ads


_UPDATABLE_FIELDS = ("tts_ms", "stuck_count", "abandoned_count", "carryovers")


class StatsTracker:
    """Per-task friction counters; ads_score is always derived, never assigned."""

    def __init__(self) -> None:
        self._stats: dict[str, Stats] = {}

    def get(self, task_id: str) -> Stats | None:
        return self._stats.get(task_id)

    def all(self) -> list[Stats]:
        return list(self._stats.values())

    def update_stats(self, task_id: str, **fields: Any) -> Stats:
        unknown = sorted(set(fields) - set(_UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown stats fields: {', '.join(unknown)}")

        record = self._stats.get(task_id) or Stats(task_id=task_id)
        for name, value in fields.items():
            if name == "tts_ms":
                record.tts_ms = None if value is None else max(0, int(value))
            else:
                setattr(record, name, max(0, int(value)))
        record.ads_score = calculate_ads(
            tts_ms=record.tts_ms,
            stuck_count=record.stuck_count,
            abandoned_count=record.abandoned_count,
            carryovers=record.carryovers,
        )
        self._stats[task_id] = record
        return record

    def record_time_to_start(self, task_id: str, tts_ms: int) -> Stats:
        return self.update_stats(task_id, tts_ms=tts_ms)

    def increment_stuck_count(self, task_id: str) -> Stats:
        current = self._stats.get(task_id)
        return self.update_stats(task_id, stuck_count=(current.stuck_count if current else 0) + 1)

    def increment_abandoned_count(self, task_id: str) -> Stats:
        current = self._stats.get(task_id)
        return self.update_stats(task_id, abandoned_count=(current.abandoned_count if current else 0) + 1)

    def increment_carryovers(self, task_id: str) -> Stats:
        current = self._stats.get(task_id)
        return self.update_stats(task_id, carryovers=(current.carryovers if current else 0) + 1)

    def delete_for_task(self, task_id: str) -> None:
        self._stats.pop(task_id, None)

    def load(self, records: list[Stats]) -> None:
        self._stats = {}
        for record in records:
            # Recompute rather than trust a stored score.
            self._stats[record.task_id] = record
            self.update_stats(record.task_id)

    def clear(self) -> None:
        self._stats = {}
