from __future__ import annotations

from fastapi import Request

from ..breakdown import BreakdownService
from ..chat import ChatTurnProcessor
from ..workspace import Workspace


def get_workspace(request: Request) -> Workspace:
    return request.app.state.workspace


def get_chat(request: Request) -> ChatTurnProcessor:
    return request.app.state.chat


def get_breakdown(request: Request) -> BreakdownService:
    return request.app.state.breakdown


def client_id(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"
