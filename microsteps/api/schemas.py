from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from ..models import AutoStartTimer, FocusSession, Stats, Task, Transition
from ..utils import get_ads_level

CategoryIn = Literal["work", "personal", "hobby", "health"]


class HealthOut(BaseModel):
    status: str = Field(default="ok")


class MetaOut(BaseModel):
    app: str
    version: str
    db_path: str
    platform: str
    provider_enabled: bool


class BreakdownRequest(BaseModel):
    taskTitle: Any = None


class BreakdownStepOut(BaseModel):
    text: str
    duration_min: int


class BreakdownOut(BaseModel):
    steps: list[BreakdownStepOut]
    fallback: bool


class ChatRequest(BaseModel):
    messages: Any = None
    sessionId: Any = None


class StepIn(BaseModel):
    text: str = Field(min_length=1, max_length=200)
    duration_min: float = Field(default=2, gt=0, allow_inf_nan=False)


class CreateTaskRequest(BaseModel):
    title: str = ""
    category: CategoryIn | None = None
    template_id: str | None = None
    steps: list[StepIn] | None = None


class UpdateTaskRequest(BaseModel):
    title: str | None = None
    category: CategoryIn | None = None


class ActiveTaskRequest(BaseModel):
    task_id: str | None = None


class SplitRequest(BaseModel):
    parts: tuple[str, str] | None = None
    auto_start_minutes: int | None = Field(default=None, ge=1)
    message: str | None = None


class HelperRequest(BaseModel):
    text: str = Field(min_length=1, max_length=200)
    duration_min: int = Field(default=1, ge=1)
    auto_start_minutes: int | None = Field(default=None, ge=1)
    message: str | None = None


class LowEnergyRequest(BaseModel):
    message: str | None = None


class AddStepRequest(BaseModel):
    after_step_id: str | None = None


class UpdateStepRequest(BaseModel):
    text: str | None = None
    duration_min: float | None = Field(default=None, allow_inf_nan=False)


class MoveStepRequest(BaseModel):
    direction: Literal["up", "down"]


class ReplaceStepsRequest(BaseModel):
    steps: list[StepIn] = Field(min_length=1)


class SurveyRequest(BaseModel):
    ease: int = Field(ge=1, le=5)
    energyBefore: int = Field(ge=1, le=5)
    energyAfter: int = Field(ge=1, le=5)
    distractions: Literal["none", "some", "many"]
    note: str | None = None


class StartSessionRequest(BaseModel):
    task_id: str
    step_id: str
    timer_min: int = Field(ge=1)


class EndSessionRequest(BaseModel):
    completed: bool = False


class StatsUpdateRequest(BaseModel):
    tts_ms: int | None = Field(default=None, ge=0)
    stuck_count: int | None = Field(default=None, ge=0)
    abandoned_count: int | None = Field(default=None, ge=0)
    carryovers: int | None = Field(default=None, ge=0)


class TimeToStartRequest(BaseModel):
    tts_ms: int = Field(ge=0)


class StatsOut(BaseModel):
    task_id: str
    tts_ms: int | None = None
    stuck_count: int
    abandoned_count: int
    carryovers: int
    ads_score: int
    ads_level: str

    @classmethod
    def from_stats(cls, stats: Stats) -> StatsOut:
        return cls(**stats.to_dict(), ads_level=get_ads_level(stats.ads_score))


class SessionOut(BaseModel):
    id: str
    task_id: str
    step_id: str
    timer_min: int
    started_at: int
    ended_at: int | None = None
    stuck_used: bool
    completed: bool

    @classmethod
    def from_session(cls, session: FocusSession) -> SessionOut:
        return cls(**session.to_dict())


class AutoStartOut(BaseModel):
    minutes: int
    message: str | None = None


class TransitionOut(BaseModel):
    applied: bool
    encouragement: str
    autoStartTimer: AutoStartOut | None = None
    showSurveyFor: str | None = None

    @classmethod
    def build(cls, transition: Transition | None, encouragement: str) -> TransitionOut:
        if transition is None:
            return cls(applied=False, encouragement=encouragement)
        return cls(
            applied=True,
            encouragement=transition.encouragement,
            autoStartTimer=auto_start_out(transition.auto_start_timer),
            showSurveyFor=transition.show_survey_for,
        )


class FocusStateOut(BaseModel):
    activeTaskId: str | None
    lastCreatedTaskId: str | None
    activeStepId: str | None
    nextStepId: str | None = None
    showSurveyFor: str | None
    lastEncouragement: str
    autoStartTimer: AutoStartOut | None = None
    task: dict[str, Any] | None = None


class IdOut(BaseModel):
    id: str


class OkOut(BaseModel):
    ok: bool = True


class FileResult(BaseModel):
    path: str


class ExportOut(BaseModel):
    tasks: list[dict[str, Any]]
    steps: list[dict[str, Any]]
    sessions: list[dict[str, Any]]
    stats: list[dict[str, Any]]


class ExportFileRequest(BaseModel):
    out_dir: str | None = None


def auto_start_out(timer: AutoStartTimer | None) -> AutoStartOut | None:
    return AutoStartOut(**timer.to_dict()) if timer else None


def task_out(task: Task) -> dict[str, Any]:
    return task.to_dict()
