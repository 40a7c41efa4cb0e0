from __future__ import annotations

from contextlib import contextmanager
import logging
import sqlite3
from threading import RLock
from typing import Any, Iterator

from .clock import Clock, RealClock
from .db import StateDB
from .errors import InternalError, ValidationError
from .models import CATEGORIES, STEP_STATUSES, FocusSession, Stats, Step, Task
from .sessions import SessionTracker
from .stats import StatsTracker
from .store import TaskStore
from .utils import IdFactory


logger = logging.getLogger(__name__)

EXPORT_KEYS = ("tasks", "steps", "sessions", "stats")


class Workspace:
    """The single user's task store, trackers and their persisted blob.

    Every mutation runs inside `transaction()`, which serialises access and
    writes the blob back when the block exits cleanly.
    """

    def __init__(
        self,
        db: StateDB | None = None,
        clock: Clock | None = None,
        ids: IdFactory | None = None,
    ) -> None:
        self.clock = clock or RealClock()
        self.ids = ids or IdFactory(self.clock)
        self.db = db
        self.store = TaskStore(clock=self.clock, ids=self.ids)
        self.stats = StatsTracker()
        self.sessions = SessionTracker(clock=self.clock, ids=self.ids)
        self._lock = RLock()
        if db is not None:
            blob = db.load_blob()
            if blob:
                self._apply_document(blob)

    @contextmanager
    def transaction(self) -> Iterator[Workspace]:
        with self._lock:
            yield self
            self._persist()

    @contextmanager
    def reading(self) -> Iterator[Workspace]:
        with self._lock:
            yield self

    def delete_task(self, task_id: str) -> bool:
        with self.transaction():
            removed = self.store.delete_task(task_id)
            self.sessions.delete_for_task(task_id)
            self.stats.delete_for_task(task_id)
            return removed

    def delete_all_data(self) -> None:
        with self._lock:
            self.store.reset()
            self.sessions.clear()
            self.stats.clear()
            if self.db is not None:
                self.db.delete_blob()
        logger.info("All task data deleted")

    def export_data(self) -> dict[str, Any]:
        with self._lock:
            tasks: list[dict[str, Any]] = []
            steps: list[dict[str, Any]] = []
            for task in self.store.tasks:
                tasks.append(task.to_dict(include_steps=False))
                steps.extend(step.to_dict(task_id=task.id) for step in task.steps)
            return {
                "tasks": tasks,
                "steps": steps,
                "sessions": [item.to_dict() for item in self.sessions.all()],
                "stats": [item.to_dict() for item in self.stats.all()],
            }

    def state_document(self) -> dict[str, Any]:
        with self._lock:
            document = self.export_data()
            step = self.store.active_step()
            document.update(
                {
                    "currentTaskId": self.store.active_task_id,
                    "currentStepId": step.id if step else None,
                    "currentSessionId": self.sessions.current_session_id,
                    "lastCreatedTaskId": self.store.last_created_task_id,
                }
            )
            return document

    def load_data(self, document: dict[str, Any]) -> None:
        with self.transaction():
            self._apply_document(document)

    def _apply_document(self, document: dict[str, Any]) -> None:
        for key in EXPORT_KEYS:
            if not isinstance(document.get(key, []), list):
                raise ValidationError(f"'{key}' must be a list")

        try:
            steps_by_task: dict[str, list[Step]] = {}
            for raw in document.get("steps", []):
                steps_by_task.setdefault(str(raw["task_id"]), []).append(Step.from_dict(raw))
            tasks = [
                Task.from_dict(raw, steps=steps_by_task.get(str(raw["id"]), []))
                for raw in document.get("tasks", [])
            ]
            task_ids = {task.id for task in tasks}
            # Orphans referencing unknown tasks are dropped.
            sessions = [
                FocusSession.from_dict(raw)
                for raw in document.get("sessions", [])
                if str(raw.get("task_id")) in task_ids
            ]
            stats = [Stats.from_dict(raw) for raw in document.get("stats", []) if str(raw.get("task_id")) in task_ids]
        except (KeyError, TypeError, ValueError, OverflowError, AttributeError) as exc:
            raise ValidationError(f"Malformed data document: {exc}") from exc

        for task in tasks:
            _check_task(task)

        self.store.load(
            tasks,
            active_task_id=document.get("currentTaskId"),
            last_created_task_id=document.get("lastCreatedTaskId"),
        )
        self.sessions.load(sessions, current_session_id=document.get("currentSessionId"))
        self.stats.load(stats)

    def _persist(self) -> None:
        if self.db is None:
            return
        try:
            self.db.save_blob(self.state_document())
        except sqlite3.Error as exc:
            logger.error("Failed to persist state to %s: %s", self.db.db_path, exc)
            raise InternalError() from exc


def _check_task(task: Task) -> None:
    if task.category not in CATEGORIES:
        raise ValidationError(f"Unknown category: {task.category!r}")
    for step in task.steps:
        if step.status not in STEP_STATUSES:
            raise ValidationError(f"Unknown step status: {step.status!r}")
        if step.duration_min < 1:
            raise ValidationError(f"Invalid step duration: {step.duration_min!r}")
