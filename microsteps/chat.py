from __future__ import annotations

from dataclasses import dataclass
import logging
import random
from typing import Any

from . import heuristics
from .clock import Clock, RealClock
from .completion import Completer
from .errors import ValidationError
from .models import ChatTurn
from .rate_limit import RateLimiter
from .session_table import SessionTable
from .utils import IdFactory


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatReply:
    reply: str
    session_id: str
    crisis: bool = False
    fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"reply": self.reply, "sessionId": self.session_id}
        if self.crisis:
            data["crisis"] = True
        if self.fallback:
            data["fallback"] = True
        return data


def normalize_messages(raw_messages: Any) -> list[ChatTurn]:
    if not isinstance(raw_messages, list) or not raw_messages:
        raise ValidationError("Invalid messages")

    turns: list[ChatTurn] = []
    for item in raw_messages:
        data = item if isinstance(item, dict) else {}
        role = str(data.get("role") or "").lower()
        content = data.get("content")
        text = "" if content is None else str(content)
        if not text.strip():
            continue
        turns.append(ChatTurn(role="assistant" if role in ("assistant", "bot") else "user", content=text))
    return turns


def strip_leading_assistant(turns: list[ChatTurn]) -> list[ChatTurn]:
    for index, turn in enumerate(turns):
        if turn.role == "user":
            return turns[index:]
    return []


def last_of(turns: list[ChatTurn], role: str) -> ChatTurn | None:
    for turn in reversed(turns):
        if turn.role == role:
            return turn
    return None


class ChatTurnProcessor:
    """Runs one chat request: throttle, prune, merge, triage, reply, persist.

    The caller-supplied transcript is treated as the authoritative
    continuation; the server copy only fills in when the caller sends
    nothing usable.
    """

    def __init__(
        self,
        sessions: SessionTable,
        limiter: RateLimiter,
        completer: Completer | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        ids: IdFactory | None = None,
    ) -> None:
        self.sessions = sessions
        self.limiter = limiter
        self.completer = completer
        self.clock = clock or RealClock()
        self.rng = rng or random.Random()
        self.ids = ids or IdFactory(self.clock, self.rng)

    def resolve_session_id(self, explicit: Any, cookie: str | None) -> str:
        if isinstance(explicit, str) and explicit:
            return explicit
        if cookie:
            return cookie
        return self.ids.session_token()

    def process(
        self,
        messages: Any,
        session_id: Any = None,
        cookie_session: str | None = None,
        client_id: str = "unknown",
    ) -> ChatReply:
        self.limiter.hit(client_id)
        self.sessions.prune()

        incoming = normalize_messages(messages)
        resolved = self.resolve_session_id(session_id, cookie_session)

        transcript = strip_leading_assistant(incoming[-self.sessions.max_messages :])
        if not transcript:
            transcript = self.sessions.history(resolved)

        last_user = last_of(transcript, "user")
        last_text = last_user.content if last_user else ""

        if heuristics.detect_crisis(last_text):
            logger.warning("CHAT_CRISIS_TRIAGE session=%s", resolved)
            return self._respond(resolved, transcript, heuristics.CRISIS_REPLY, crisis=True)

        if self.completer is None:
            previous = last_of(transcript, "assistant")
            reply = heuristics.local_reply(last_text, previous.content if previous else None, self.rng)
            return self._respond(resolved, transcript, reply, fallback=True)

        system_prompt = heuristics.SYSTEM_PROMPT
        emotion = heuristics.detect_emotion(last_text)
        if emotion:
            system_prompt = f"{system_prompt}\n\n{heuristics.emotion_instruction(emotion)}"

        try:
            reply = self.completer.complete(system_prompt, transcript)
        except Exception:
            logger.exception("Chat completion failed, using fallback reply session=%s", resolved)
            return self._respond(resolved, transcript, heuristics.PROVIDER_FALLBACK_REPLY, fallback=True)
        return self._respond(resolved, transcript, reply)

    def _respond(
        self,
        session_id: str,
        transcript: list[ChatTurn],
        reply: str,
        crisis: bool = False,
        fallback: bool = False,
    ) -> ChatReply:
        combined = [*transcript, ChatTurn(role="assistant", content=reply)][-self.sessions.max_messages :]
        history = strip_leading_assistant(combined)
        if history:
            self.sessions.save(session_id, history)
        return ChatReply(reply=reply, session_id=session_id, crisis=crisis, fallback=fallback)
