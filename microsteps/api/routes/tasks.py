from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from ...errors import ValidationError
from ...models import SurveyInput, Task
from ...workspace import Workspace
from ..deps import get_workspace
from ..schemas import (
    AddStepRequest,
    CreateTaskRequest,
    IdOut,
    MoveStepRequest,
    OkOut,
    ReplaceStepsRequest,
    SurveyRequest,
    UpdateStepRequest,
    UpdateTaskRequest,
    task_out,
)

router = APIRouter(prefix="/api/v1", tags=["tasks"])


def _require_task(workspace: Workspace, task_id: str) -> Task:
    task = workspace.store.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="task not found")
    return task


@router.get("/tasks")
def list_tasks(workspace: Workspace = Depends(get_workspace)) -> list[dict[str, Any]]:
    with workspace.reading():
        return [task_out(task) for task in workspace.store.tasks]


@router.post("/tasks", response_model=IdOut)
def create_task(payload: CreateTaskRequest, workspace: Workspace = Depends(get_workspace)) -> IdOut:
    with workspace.transaction():
        if payload.template_id:
            task_id = workspace.store.create_task_from_template(
                payload.template_id,
                title=payload.title,
                category=payload.category,
            )
        elif payload.steps:
            task_id = workspace.store.create_task_from_steps(
                title=payload.title,
                category=payload.category or "personal",
                steps=[step.model_dump() for step in payload.steps],
            )
        else:
            raise ValidationError("Provide either template_id or a non-empty steps list")
    return IdOut(id=task_id)


@router.get("/tasks/{task_id}")
def get_task(task_id: str, workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    with workspace.reading():
        return task_out(_require_task(workspace, task_id))


@router.patch("/tasks/{task_id}")
def update_task(
    task_id: str,
    payload: UpdateTaskRequest,
    workspace: Workspace = Depends(get_workspace),
) -> dict[str, Any]:
    with workspace.transaction():
        task = _require_task(workspace, task_id)
        workspace.store.update_task(task_id, title=payload.title, category=payload.category)
        return task_out(task)


@router.delete("/tasks/{task_id}", response_model=OkOut)
def delete_task(task_id: str, workspace: Workspace = Depends(get_workspace)) -> OkOut:
    if not workspace.delete_task(task_id):
        raise HTTPException(status_code=404, detail="task not found")
    return OkOut()


@router.post("/tasks/{task_id}/steps", response_model=IdOut)
def add_step(
    task_id: str,
    payload: AddStepRequest,
    workspace: Workspace = Depends(get_workspace),
) -> IdOut:
    with workspace.transaction():
        step_id = workspace.store.add_step(task_id, after_step_id=payload.after_step_id)
    if step_id is None:
        raise HTTPException(status_code=404, detail="task not found")
    return IdOut(id=step_id)


@router.put("/tasks/{task_id}/steps")
def replace_steps(
    task_id: str,
    payload: ReplaceStepsRequest,
    workspace: Workspace = Depends(get_workspace),
) -> dict[str, Any]:
    with workspace.transaction():
        task = _require_task(workspace, task_id)
        workspace.store.replace_steps(task_id, [step.model_dump() for step in payload.steps])
        return task_out(task)


@router.patch("/tasks/{task_id}/steps/{step_id}")
def update_step(
    task_id: str,
    step_id: str,
    payload: UpdateStepRequest,
    workspace: Workspace = Depends(get_workspace),
) -> dict[str, Any]:
    with workspace.transaction():
        task = _require_task(workspace, task_id)
        if task.step_index(step_id) < 0:
            raise HTTPException(status_code=404, detail="step not found")
        if payload.text is not None:
            workspace.store.update_step_text(task_id, step_id, payload.text)
        if payload.duration_min is not None:
            workspace.store.update_step_duration(task_id, step_id, payload.duration_min)
        return task_out(task)


@router.post("/tasks/{task_id}/steps/{step_id}/move")
def move_step(
    task_id: str,
    step_id: str,
    payload: MoveStepRequest,
    workspace: Workspace = Depends(get_workspace),
) -> dict[str, Any]:
    with workspace.transaction():
        task = _require_task(workspace, task_id)
        if task.step_index(step_id) < 0:
            raise HTTPException(status_code=404, detail="step not found")
        # Moving past either end is a no-op.
        workspace.store.move_step(task_id, step_id, payload.direction)
        return task_out(task)


@router.delete("/tasks/{task_id}/steps/{step_id}")
def delete_step(task_id: str, step_id: str, workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    with workspace.transaction():
        task = _require_task(workspace, task_id)
        if task.step_index(step_id) < 0:
            raise HTTPException(status_code=404, detail="step not found")
        if not workspace.store.delete_step(task_id, step_id):
            raise ValidationError("A task needs at least one step")
        return task_out(task)


@router.post("/tasks/{task_id}/survey")
def save_survey(
    task_id: str,
    payload: SurveyRequest,
    workspace: Workspace = Depends(get_workspace),
) -> dict[str, Any]:
    survey = SurveyInput(
        ease=payload.ease,
        energy_before=payload.energyBefore,
        energy_after=payload.energyAfter,
        distractions=payload.distractions,
        note=payload.note,
    )
    with workspace.transaction():
        summary = workspace.store.save_survey(task_id, survey)
    if summary is None:
        raise HTTPException(status_code=404, detail="task not found")
    return summary.to_dict()


@router.post("/tasks/{task_id}/survey/open", response_model=OkOut)
def open_survey(task_id: str, workspace: Workspace = Depends(get_workspace)) -> OkOut:
    with workspace.transaction():
        _require_task(workspace, task_id)
        workspace.store.open_survey(task_id)
    return OkOut()
