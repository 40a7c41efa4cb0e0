from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...workspace import Workspace
from ..deps import get_workspace
from ..schemas import StatsOut, StatsUpdateRequest, TimeToStartRequest

router = APIRouter(prefix="/api/v1", tags=["stats"])


def _require_task(workspace: Workspace, task_id: str) -> None:
    if workspace.store.get_task(task_id) is None:
        raise HTTPException(status_code=404, detail="task not found")


@router.get("/stats", response_model=list[StatsOut])
def list_stats(workspace: Workspace = Depends(get_workspace)) -> list[StatsOut]:
    with workspace.reading():
        return [StatsOut.from_stats(item) for item in workspace.stats.all()]


@router.get("/stats/{task_id}", response_model=StatsOut)
def get_stats(task_id: str, workspace: Workspace = Depends(get_workspace)) -> StatsOut:
    with workspace.reading():
        item = workspace.stats.get(task_id)
        if item is not None:
            return StatsOut.from_stats(item)
    raise HTTPException(status_code=404, detail="stats not found")


@router.patch("/stats/{task_id}", response_model=StatsOut)
def update_stats(
    task_id: str,
    payload: StatsUpdateRequest,
    workspace: Workspace = Depends(get_workspace),
) -> StatsOut:
    with workspace.transaction():
        _require_task(workspace, task_id)
        item = workspace.stats.update_stats(task_id, **payload.model_dump(exclude_unset=True))
        return StatsOut.from_stats(item)


@router.post("/stats/{task_id}/time-to-start", response_model=StatsOut)
def record_time_to_start(
    task_id: str,
    payload: TimeToStartRequest,
    workspace: Workspace = Depends(get_workspace),
) -> StatsOut:
    with workspace.transaction():
        _require_task(workspace, task_id)
        return StatsOut.from_stats(workspace.stats.record_time_to_start(task_id, payload.tts_ms))


@router.post("/stats/{task_id}/stuck", response_model=StatsOut)
def increment_stuck(task_id: str, workspace: Workspace = Depends(get_workspace)) -> StatsOut:
    with workspace.transaction():
        _require_task(workspace, task_id)
        return StatsOut.from_stats(workspace.stats.increment_stuck_count(task_id))


@router.post("/stats/{task_id}/abandoned", response_model=StatsOut)
def increment_abandoned(task_id: str, workspace: Workspace = Depends(get_workspace)) -> StatsOut:
    with workspace.transaction():
        _require_task(workspace, task_id)
        return StatsOut.from_stats(workspace.stats.increment_abandoned_count(task_id))


@router.post("/stats/{task_id}/carryover", response_model=StatsOut)
def increment_carryover(task_id: str, workspace: Workspace = Depends(get_workspace)) -> StatsOut:
    with workspace.transaction():
        _require_task(workspace, task_id)
        return StatsOut.from_stats(workspace.stats.increment_carryovers(task_id))
