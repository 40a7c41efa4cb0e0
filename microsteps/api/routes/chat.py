from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Cookie, Depends, Response

from ...chat import ChatTurnProcessor
from ..deps import client_id, get_chat
from ..schemas import ChatRequest

router = APIRouter(prefix="/api/v1", tags=["chat"])

SESSION_COOKIE = "chat_session"
SESSION_COOKIE_MAX_AGE = 7 * 24 * 60 * 60


@router.post("/chat")
def chat(
    payload: ChatRequest,
    response: Response,
    chat_session: str | None = Cookie(default=None),
    client: str = Depends(client_id),
    processor: ChatTurnProcessor = Depends(get_chat),
) -> dict[str, Any]:
    result = processor.process(
        payload.messages,
        session_id=payload.sessionId,
        cookie_session=chat_session,
        client_id=client,
    )
    response.set_cookie(
        SESSION_COOKIE,
        result.session_id,
        max_age=SESSION_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
    )
    return result.to_dict()
