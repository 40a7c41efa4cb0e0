from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...workspace import Workspace
from ..deps import get_workspace
from ..schemas import (
    ActiveTaskRequest,
    FocusStateOut,
    HelperRequest,
    LowEnergyRequest,
    OkOut,
    SplitRequest,
    TransitionOut,
    auto_start_out,
    task_out,
)

router = APIRouter(prefix="/api/v1", tags=["focus"])


def _focus_state(workspace: Workspace) -> FocusStateOut:
    store = workspace.store
    task = store.active_task()
    step = store.active_step()
    upcoming = store.next_step(task.id) if task else None
    return FocusStateOut(
        activeTaskId=store.active_task_id,
        lastCreatedTaskId=store.last_created_task_id,
        activeStepId=step.id if step else None,
        nextStepId=upcoming.id if upcoming else None,
        showSurveyFor=store.show_survey_for,
        lastEncouragement=store.last_encouragement,
        autoStartTimer=auto_start_out(store.auto_start_timer),
        task=task_out(task) if task else None,
    )


@router.get("/focus/state", response_model=FocusStateOut)
def focus_state(workspace: Workspace = Depends(get_workspace)) -> FocusStateOut:
    with workspace.reading():
        return _focus_state(workspace)


@router.post("/focus/active-task", response_model=FocusStateOut)
def set_active_task(payload: ActiveTaskRequest, workspace: Workspace = Depends(get_workspace)) -> FocusStateOut:
    with workspace.transaction():
        if payload.task_id and workspace.store.get_task(payload.task_id) is None:
            raise HTTPException(status_code=404, detail="task not found")
        workspace.store.set_active_task(payload.task_id)
        return _focus_state(workspace)


@router.post("/focus/done", response_model=TransitionOut)
def mark_step_done(workspace: Workspace = Depends(get_workspace)) -> TransitionOut:
    with workspace.transaction():
        transition = workspace.store.mark_step_done()
        return TransitionOut.build(transition, workspace.store.last_encouragement)


@router.post("/focus/split", response_model=TransitionOut)
def split_step(payload: SplitRequest, workspace: Workspace = Depends(get_workspace)) -> TransitionOut:
    with workspace.transaction():
        transition = workspace.store.split_current_step(
            parts=payload.parts,
            auto_start_minutes=payload.auto_start_minutes,
            message=payload.message,
        )
        return TransitionOut.build(transition, workspace.store.last_encouragement)


@router.post("/focus/helper", response_model=TransitionOut)
def insert_helper(payload: HelperRequest, workspace: Workspace = Depends(get_workspace)) -> TransitionOut:
    with workspace.transaction():
        transition = workspace.store.insert_helper_step(
            payload.text,
            duration_min=payload.duration_min,
            auto_start_minutes=payload.auto_start_minutes,
            message=payload.message,
        )
        return TransitionOut.build(transition, workspace.store.last_encouragement)


@router.post("/focus/low-energy", response_model=TransitionOut)
def low_energy(payload: LowEnergyRequest, workspace: Workspace = Depends(get_workspace)) -> TransitionOut:
    with workspace.transaction():
        transition = workspace.store.trigger_low_energy(payload.message)
        return TransitionOut.build(transition, workspace.store.last_encouragement)


@router.post("/focus/acknowledge", response_model=OkOut)
def acknowledge_auto_start(workspace: Workspace = Depends(get_workspace)) -> OkOut:
    with workspace.transaction():
        workspace.store.acknowledge_auto_start()
    return OkOut()


@router.post("/focus/survey/close", response_model=OkOut)
def close_survey(workspace: Workspace = Depends(get_workspace)) -> OkOut:
    with workspace.transaction():
        workspace.store.close_survey()
    return OkOut()
