from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...workspace import Workspace
from ..deps import get_workspace
from ..schemas import EndSessionRequest, IdOut, SessionOut, StartSessionRequest

router = APIRouter(prefix="/api/v1", tags=["sessions"])


@router.get("/sessions", response_model=list[SessionOut])
def list_sessions(task_id: str | None = None, workspace: Workspace = Depends(get_workspace)) -> list[SessionOut]:
    with workspace.reading():
        items = workspace.sessions.sessions_for(task_id) if task_id else workspace.sessions.all()
        return [SessionOut.from_session(item) for item in items]


@router.post("/sessions", response_model=IdOut)
def start_session(payload: StartSessionRequest, workspace: Workspace = Depends(get_workspace)) -> IdOut:
    with workspace.transaction():
        task = workspace.store.get_task(payload.task_id)
        if task is None or task.step_index(payload.step_id) < 0:
            raise HTTPException(status_code=404, detail="task or step not found")
        session_id = workspace.sessions.start_session(payload.task_id, payload.step_id, payload.timer_min)
    return IdOut(id=session_id)


@router.get("/sessions/{session_id}", response_model=SessionOut)
def get_session(session_id: str, workspace: Workspace = Depends(get_workspace)) -> SessionOut:
    with workspace.reading():
        item = workspace.sessions.get(session_id)
        if item is not None:
            return SessionOut.from_session(item)
    raise HTTPException(status_code=404, detail="session not found")


@router.post("/sessions/{session_id}/end", response_model=SessionOut)
def end_session(
    session_id: str,
    payload: EndSessionRequest,
    workspace: Workspace = Depends(get_workspace),
) -> SessionOut:
    with workspace.transaction():
        item = workspace.sessions.end_session(session_id, payload.completed)
        if item is None:
            raise HTTPException(status_code=404, detail="session not found")
        return SessionOut.from_session(item)


@router.post("/sessions/{session_id}/stuck", response_model=SessionOut)
def mark_stuck_used(session_id: str, workspace: Workspace = Depends(get_workspace)) -> SessionOut:
    with workspace.transaction():
        item = workspace.sessions.mark_stuck_used(session_id)
        if item is None:
            raise HTTPException(status_code=404, detail="session not found")
        return SessionOut.from_session(item)
