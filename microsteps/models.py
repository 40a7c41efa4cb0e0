from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

StepStatus = Literal["todo", "doing", "done"]
Category = Literal["work", "personal", "hobby", "health"]
Distractions = Literal["none", "some", "many"]
ChatRole = Literal["user", "assistant"]

STEP_STATUSES: tuple[str, ...] = ("todo", "doing", "done")
CATEGORIES: tuple[str, ...] = ("work", "personal", "hobby", "health")
DISTRACTION_LEVELS: tuple[str, ...] = ("none", "some", "many")


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


@dataclass
class Step:
    id: str
    text: str
    duration_min: int
    status: StepStatus = "todo"
    order: int = 0

    def to_dict(self, task_id: str | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "duration_min": self.duration_min,
            "status": self.status,
            "order": self.order,
        }
        if task_id is not None:
            data["task_id"] = task_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Step:
        return cls(
            id=str(data["id"]),
            text=str(data.get("text", "")),
            duration_min=int(data.get("duration_min", 1)),
            status=str(data.get("status", "todo")),  # type: ignore[arg-type]
            order=int(data.get("order", 0)),
        )


@dataclass(frozen=True)
class SurveyInput:
    ease: int
    energy_before: int
    energy_after: int
    distractions: Distractions
    note: str | None = None


@dataclass(frozen=True)
class SessionSummary:
    ease: int
    energy_before: int
    energy_after: int
    delta_energy: int
    distractions: Distractions
    felt_easy: bool
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "ease": self.ease,
            "energyBefore": self.energy_before,
            "energyAfter": self.energy_after,
            "deltaEnergy": self.delta_energy,
            "distractions": self.distractions,
            "feltEasy": self.felt_easy,
        }
        if self.note is not None:
            data["note"] = self.note
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionSummary:
        return cls(
            ease=int(data["ease"]),
            energy_before=int(data["energyBefore"]),
            energy_after=int(data["energyAfter"]),
            delta_energy=int(data["deltaEnergy"]),
            distractions=str(data["distractions"]),  # type: ignore[arg-type]
            felt_easy=bool(data["feltEasy"]),
            note=data.get("note"),
        )


@dataclass
class Task:
    id: str
    title: str
    category: Category
    created_at: int
    steps: list[Step] = field(default_factory=list)
    active_step_id: str | None = None
    streak: int = 0
    last_encouragement: str = ""
    summary: SessionSummary | None = None
    completed_at: int | None = None

    def step_index(self, step_id: str | None) -> int:
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                return index
        return -1

    def completed_count(self) -> int:
        return sum(1 for step in self.steps if step.status == "done")

    def to_dict(self, include_steps: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "activeStepId": self.active_step_id,
            "streak": self.streak,
            "lastEncouragement": self.last_encouragement,
            "createdAt": self.created_at,
        }
        if include_steps:
            data["steps"] = [step.to_dict() for step in self.steps]
        if self.summary is not None:
            data["summary"] = self.summary.to_dict()
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], steps: list[Step] | None = None) -> Task:
        if steps is None:
            steps = [Step.from_dict(item) for item in data.get("steps") or []]
        summary_raw = data.get("summary")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            category=str(data.get("category", "personal")),  # type: ignore[arg-type]
            created_at=int(data.get("createdAt", 0)),
            steps=sorted(steps, key=lambda step: step.order),
            active_step_id=data.get("activeStepId"),
            streak=int(data.get("streak", 0)),
            last_encouragement=str(data.get("lastEncouragement", "")),
            summary=SessionSummary.from_dict(summary_raw) if summary_raw else None,
            completed_at=_optional_int(data.get("completedAt")),
        )


@dataclass
class Stats:
    task_id: str
    tts_ms: int | None = None
    stuck_count: int = 0
    abandoned_count: int = 0
    carryovers: int = 0
    ads_score: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "task_id": self.task_id,
            "stuck_count": self.stuck_count,
            "abandoned_count": self.abandoned_count,
            "carryovers": self.carryovers,
            "ads_score": self.ads_score,
        }
        if self.tts_ms is not None:
            data["tts_ms"] = self.tts_ms
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Stats:
        return cls(
            task_id=str(data["task_id"]),
            tts_ms=_optional_int(data.get("tts_ms")),
            stuck_count=int(data.get("stuck_count", 0)),
            abandoned_count=int(data.get("abandoned_count", 0)),
            carryovers=int(data.get("carryovers", 0)),
            ads_score=int(data.get("ads_score", 0)),
        )


@dataclass
class FocusSession:
    id: str
    task_id: str
    step_id: str
    timer_min: int
    started_at: int
    ended_at: int | None = None
    stuck_used: bool = False
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "task_id": self.task_id,
            "step_id": self.step_id,
            "timer_min": self.timer_min,
            "started_at": self.started_at,
            "stuck_used": self.stuck_used,
            "completed": self.completed,
        }
        if self.ended_at is not None:
            data["ended_at"] = self.ended_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FocusSession:
        return cls(
            id=str(data["id"]),
            task_id=str(data["task_id"]),
            step_id=str(data.get("step_id", "")),
            timer_min=int(data.get("timer_min", 0)),
            started_at=int(data.get("started_at", 0)),
            ended_at=_optional_int(data.get("ended_at")),
            stuck_used=bool(data.get("stuck_used", False)),
            completed=bool(data.get("completed", False)),
        )


@dataclass(frozen=True)
class AutoStartTimer:
    minutes: int
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"minutes": self.minutes, "message": self.message}


@dataclass(frozen=True)
class Transition:
    """What a focus transition tells the UI to show next."""

    encouragement: str
    auto_start_timer: AutoStartTimer | None = None
    show_survey_for: str | None = None


@dataclass(frozen=True)
class ChatTurn:
    role: ChatRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ChatSession:
    session_id: str
    messages: list[ChatTurn]
    updated_at: int
