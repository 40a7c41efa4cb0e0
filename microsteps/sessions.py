from __future__ import annotations

from .clock import Clock, RealClock, timestamp_ms
from .errors import ValidationError
from .models import FocusSession
from .utils import IdFactory


class SessionTracker:
    """Timed focus runs, one list shared by every task."""

    def __init__(self, clock: Clock | None = None, ids: IdFactory | None = None) -> None:
        self.clock = clock or RealClock()
        self.ids = ids or IdFactory(self.clock)
        self._sessions: list[FocusSession] = []
        self.current_session_id: str | None = None

    def get(self, session_id: str | None) -> FocusSession | None:
        return next((item for item in self._sessions if item.id == session_id), None)

    def all(self) -> list[FocusSession]:
        return list(self._sessions)

    def sessions_for(self, task_id: str) -> list[FocusSession]:
        return [item for item in self._sessions if item.task_id == task_id]

    def open_session(self, task_id: str) -> FocusSession | None:
        for item in reversed(self._sessions):
            if item.task_id == task_id and item.ended_at is None:
                return item
        return None

    def start_session(self, task_id: str, step_id: str, timer_min: int) -> str:
        if int(timer_min) < 1:
            raise ValidationError(f"timer_min must be >= 1, got {timer_min}")
        session = FocusSession(
            id=self.ids.new("session"),
            task_id=task_id,
            step_id=step_id,
            timer_min=int(timer_min),
            started_at=timestamp_ms(self.clock),
        )
        self._sessions.append(session)
        self.current_session_id = session.id
        return session.id

    def end_session(self, session_id: str, completed: bool) -> FocusSession | None:
        session = self.get(session_id)
        if session is None:
            return None
        if session.ended_at is None:
            session.ended_at = timestamp_ms(self.clock)
        session.completed = bool(completed)
        if self.current_session_id == session_id:
            self.current_session_id = None
        return session

    def mark_stuck_used(self, session_id: str) -> FocusSession | None:
        session = self.get(session_id)
        if session is not None:
            session.stuck_used = True
        return session

    def delete_for_task(self, task_id: str) -> None:
        self._sessions = [item for item in self._sessions if item.task_id != task_id]
        if self.get(self.current_session_id) is None:
            self.current_session_id = None

    def load(self, sessions: list[FocusSession], current_session_id: str | None = None) -> None:
        self._sessions = list(sessions)
        self.current_session_id = current_session_id if self.get(current_session_id) else None

    def clear(self) -> None:
        self._sessions = []
        self.current_session_id = None
