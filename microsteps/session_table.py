from __future__ import annotations

from datetime import timedelta
from threading import Lock
from typing import Iterable, MutableMapping

from .clock import Clock, RealClock, timestamp_ms
from .models import ChatSession, ChatTurn


SESSION_TTL_SECONDS = 60 * 60 * 24
MAX_SESSION_MESSAGES = 50


class SessionTable:
    """Server-held chat transcripts, evicted lazily after a period of inactivity."""

    def __init__(
        self,
        clock: Clock | None = None,
        ttl_seconds: float = SESSION_TTL_SECONDS,
        max_messages: int = MAX_SESSION_MESSAGES,
        storage: MutableMapping[str, ChatSession] | None = None,
    ) -> None:
        self.clock = clock or RealClock()
        self.ttl_ms = int(timedelta(seconds=ttl_seconds).total_seconds() * 1000)
        self.max_messages = max_messages
        self._sessions: MutableMapping[str, ChatSession] = storage if storage is not None else {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def prune(self) -> int:
        now = timestamp_ms(self.clock)
        with self._lock:
            stale = [key for key, entry in self._sessions.items() if now - entry.updated_at > self.ttl_ms]
            for key in stale:
                del self._sessions[key]
        return len(stale)

    def get(self, session_id: str) -> ChatSession | None:
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            return ChatSession(entry.session_id, list(entry.messages), entry.updated_at)

    def history(self, session_id: str) -> list[ChatTurn]:
        entry = self.get(session_id)
        return entry.messages if entry else []

    def save(self, session_id: str, messages: Iterable[ChatTurn]) -> ChatSession:
        trimmed = list(messages)[-self.max_messages :]
        entry = ChatSession(session_id=session_id, messages=trimmed, updated_at=timestamp_ms(self.clock))
        with self._lock:
            self._sessions[session_id] = entry
        return ChatSession(session_id, list(trimmed), entry.updated_at)
