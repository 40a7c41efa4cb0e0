from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

from . import calm_copy
from .clock import Clock, RealClock, timestamp_ms
from .errors import ValidationError
from .models import (
    CATEGORIES,
    DISTRACTION_LEVELS,
    AutoStartTimer,
    Category,
    SessionSummary,
    Step,
    SurveyInput,
    Task,
    Transition,
)
from .split_advisor import split_suggestion
from .utils import IdFactory, round_minutes


Direction = Literal["up", "down"]

LOW_ENERGY_MINUTES = 2


@dataclass(frozen=True)
class TaskTemplate:
    id: str
    title: str
    category: Category
    steps: tuple[tuple[str, int], ...]


TASK_TEMPLATES: tuple[TaskTemplate, ...] = (
    TaskTemplate(
        id="morning-prep",
        title="Get ready for work",
        category="personal",
        steps=(
            ("Open wardrobe & set out outfit (top/bottom/socks/underwear)", 2),
            ("Put on outfit (clothes only)", 2),
            ("Bathroom quick: brush teeth + face splash", 2),
            ("Pack essentials: phone/wallet/keys + ID/badge + water", 2),
            ("Shoes on, grab bag, lock door", 2),
        ),
    ),
)


def find_template(template_id: str) -> TaskTemplate:
    for template in TASK_TEMPLATES:
        if template.id == template_id:
            return template
    return TASK_TEMPLATES[0]


def _renumber(steps: list[Step]) -> None:
    for order, step in enumerate(steps):
        step.order = order


def _repair_active(task: Task) -> None:
    """Keep exactly one `doing` step while work remains and point activeStepId at it."""
    doing = [step for step in task.steps if step.status == "doing"]
    for extra in doing[1:]:
        extra.status = "todo"
    if not doing:
        pending = next((step for step in task.steps if step.status != "done"), None)
        if pending is not None:
            pending.status = "doing"
            doing = [pending]
    task.active_step_id = doing[0].id if doing else None


class TaskStore:
    def __init__(self, clock: Clock | None = None, ids: IdFactory | None = None) -> None:
        self.clock = clock or RealClock()
        self.ids = ids or IdFactory(self.clock)
        self.tasks: list[Task] = []
        self.active_task_id: str | None = None
        self.last_created_task_id: str | None = None
        self.auto_start_timer: AutoStartTimer | None = None
        self.show_survey_for: str | None = None
        self.last_encouragement: str = calm_copy.INITIAL_ENCOURAGEMENT

    # -- lookup -----------------------------------------------------------

    def get_task(self, task_id: str | None) -> Task | None:
        return next((task for task in self.tasks if task.id == task_id), None)

    def active_task(self) -> Task | None:
        return self.get_task(self.active_task_id)

    def active_step(self) -> Step | None:
        task = self.active_task()
        if task is None:
            return None
        index = task.step_index(task.active_step_id)
        return task.steps[index] if index >= 0 else None

    def next_step(self, task_id: str) -> Step | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        index = task.step_index(task.active_step_id)
        for step in task.steps[index + 1 :]:
            if step.status != "done":
                return step
        return None

    # -- creation ---------------------------------------------------------

    def create_task_from_template(
        self,
        template_id: str,
        title: str | None = None,
        category: Category | None = None,
    ) -> str:
        template = find_template(template_id)
        steps = [{"text": text, "duration_min": minutes} for text, minutes in template.steps]
        return self._add_task(
            title=(title or "").strip() or template.title,
            category=category or template.category,
            raw_steps=steps,
        )

    def create_task_from_steps(
        self,
        title: str,
        category: Category,
        steps: Iterable[dict[str, object]],
    ) -> str:
        return self._add_task(
            title=(title or "").strip() or "New task",
            category=category,
            raw_steps=list(steps),
        )

    def _add_task(self, title: str, category: Category, raw_steps: list[dict[str, object]]) -> str:
        if category not in CATEGORIES:
            raise ValidationError(f"Unknown category: {category}")
        steps = self._build_steps(raw_steps)
        task = Task(
            id=self.ids.new("task"),
            title=title,
            category=category,
            created_at=timestamp_ms(self.clock),
            steps=steps,
            active_step_id=steps[0].id if steps else None,
            last_encouragement=calm_copy.pick_encouragement(0, len(steps)),
        )
        self.tasks.append(task)
        self.active_task_id = task.id
        self.last_created_task_id = task.id
        self.last_encouragement = task.last_encouragement or calm_copy.INITIAL_ENCOURAGEMENT
        self.auto_start_timer = None
        return task.id

    def _build_steps(self, raw_steps: list[dict[str, object]]) -> list[Step]:
        steps: list[Step] = []
        for index, raw in enumerate(raw_steps):
            text = str(raw.get("text", "")).strip()
            if not text:
                raise ValidationError("Step text must not be empty")
            duration = raw.get("duration_min")
            try:
                minutes = round_minutes(2 if duration is None else float(duration))  # type: ignore[arg-type]
            except (TypeError, ValueError) as exc:
                raise ValidationError(f"Invalid step duration: {duration!r}") from exc
            steps.append(
                Step(
                    id=self.ids.new("step"),
                    text=text,
                    duration_min=minutes,
                    status="doing" if index == 0 else "todo",
                    order=index,
                )
            )
        return steps

    # -- focus ------------------------------------------------------------

    def set_active_task(self, task_id: str | None) -> None:
        if not task_id:
            self.active_task_id = None
            self.last_encouragement = calm_copy.INITIAL_ENCOURAGEMENT
            return
        task = self.get_task(task_id)
        if task is None:
            return
        _repair_active(task)
        _renumber(task.steps)
        self.active_task_id = task.id
        self.auto_start_timer = None
        self.last_encouragement = task.last_encouragement or self.last_encouragement

    def mark_step_done(self) -> Transition | None:
        task = self.active_task()
        if task is None or not task.active_step_id:
            return None
        index = task.step_index(task.active_step_id)
        if index < 0:
            return None

        task.steps[index].status = "done"
        next_active: str | None = None
        for step in task.steps[index + 1 :]:
            if step.status != "done":
                step.status = "doing"
                next_active = step.id
                break

        completed = task.completed_count()
        all_done = completed == len(task.steps)
        if next_active is None and not all_done:
            # Pending steps sit before the finished one (after a reorder).
            _repair_active(task)
            next_active = task.active_step_id
        encouragement = (
            calm_copy.SEQUENCE_COMPLETE if all_done else calm_copy.pick_encouragement(completed, len(task.steps))
        )

        _renumber(task.steps)
        task.active_step_id = next_active
        task.streak += 1
        task.last_encouragement = encouragement
        if all_done:
            task.completed_at = timestamp_ms(self.clock)
            self.show_survey_for = task.id
        self.last_encouragement = encouragement
        self.auto_start_timer = None
        return Transition(encouragement=encouragement, show_survey_for=task.id if all_done else None)

    def split_current_step(
        self,
        parts: tuple[str, str] | None = None,
        auto_start_minutes: int | None = None,
        message: str | None = None,
    ) -> Transition | None:
        task = self.active_task()
        if task is None or not task.active_step_id:
            return None
        index = task.step_index(task.active_step_id)
        if index < 0:
            return None

        first, second = parts or split_suggestion(task.steps[index].text)
        created = [
            Step(id=self.ids.new("step"), text=first, duration_min=1, status="doing"),
            Step(id=self.ids.new("step"), text=second, duration_min=1, status="todo"),
        ]
        tail = task.steps[index + 1 :]
        for step in tail:
            if step.status != "done":
                step.status = "todo"
        task.steps = task.steps[:index] + created + tail
        _renumber(task.steps)
        task.active_step_id = created[0].id
        return self._nudge(task, calm_copy.SPLIT_APPLIED, auto_start_minutes, message)

    def insert_helper_step(
        self,
        text: str,
        duration_min: int = 1,
        auto_start_minutes: int | None = None,
        message: str | None = None,
    ) -> Transition | None:
        task = self.active_task()
        if task is None or not task.active_step_id:
            return None
        index = task.step_index(task.active_step_id)
        if index < 0:
            return None
        if not (text or "").strip():
            raise ValidationError("Helper step text must not be empty")

        helper = Step(
            id=self.ids.new("step"),
            text=text.strip(),
            duration_min=round_minutes(duration_min),
            status="doing",
        )
        task.steps[index].status = "todo"
        task.steps.insert(index, helper)
        _renumber(task.steps)
        task.active_step_id = helper.id
        return self._nudge(task, calm_copy.HELPER_INSERTED, auto_start_minutes, message)

    def _nudge(
        self,
        task: Task,
        encouragement: str,
        auto_start_minutes: int | None,
        message: str | None,
    ) -> Transition:
        task.last_encouragement = encouragement
        self.last_encouragement = encouragement
        self.auto_start_timer = (
            AutoStartTimer(minutes=int(auto_start_minutes), message=message) if auto_start_minutes else None
        )
        return Transition(encouragement=encouragement, auto_start_timer=self.auto_start_timer)

    def trigger_low_energy(self, message: str | None = None) -> Transition:
        self.auto_start_timer = AutoStartTimer(
            minutes=LOW_ENERGY_MINUTES,
            message=message or calm_copy.LOW_ENERGY_TIMER,
        )
        self.last_encouragement = calm_copy.LOW_ENERGY_NUDGE
        return Transition(encouragement=self.last_encouragement, auto_start_timer=self.auto_start_timer)

    def acknowledge_auto_start(self) -> None:
        self.auto_start_timer = None

    # -- editing ----------------------------------------------------------

    def update_task(self, task_id: str, title: str | None = None, category: Category | None = None) -> bool:
        task = self.get_task(task_id)
        if task is None:
            return False
        if title is not None and title.strip():
            task.title = title.strip()
        if category is not None:
            if category not in CATEGORIES:
                raise ValidationError(f"Unknown category: {category}")
            task.category = category
        return True

    def _find_step(self, task_id: str, step_id: str) -> tuple[Task, Step] | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        index = task.step_index(step_id)
        if index < 0:
            return None
        return task, task.steps[index]

    def update_step_text(self, task_id: str, step_id: str, text: str) -> bool:
        found = self._find_step(task_id, step_id)
        if found is None:
            return False
        found[1].text = text
        return True

    def update_step_duration(self, task_id: str, step_id: str, minutes: float) -> bool:
        found = self._find_step(task_id, step_id)
        if found is None:
            return False
        found[1].duration_min = round_minutes(minutes)
        return True

    def move_step(self, task_id: str, step_id: str, direction: Direction) -> bool:
        task = self.get_task(task_id)
        if task is None:
            return False
        index = task.step_index(step_id)
        if index < 0:
            return False
        swap_with = index - 1 if direction == "up" else index + 1
        if swap_with < 0 or swap_with >= len(task.steps):
            return False
        task.steps[index], task.steps[swap_with] = task.steps[swap_with], task.steps[index]
        _renumber(task.steps)
        return True

    def add_step(self, task_id: str, after_step_id: str | None = None) -> str | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        step = Step(id=self.ids.new("step"), text="New step", duration_min=1, status="todo")
        index = task.step_index(after_step_id) if after_step_id else -1
        if index >= 0:
            task.steps.insert(index + 1, step)
        else:
            task.steps.append(step)
        _renumber(task.steps)
        _repair_active(task)
        return step.id

    def delete_step(self, task_id: str, step_id: str) -> bool:
        task = self.get_task(task_id)
        if task is None:
            return False
        remaining = [step for step in task.steps if step.id != step_id]
        if not remaining or len(remaining) == len(task.steps):
            return False
        task.steps = remaining
        _renumber(task.steps)
        _repair_active(task)
        return True

    def replace_steps(self, task_id: str, steps: Iterable[dict[str, object]]) -> bool:
        task = self.get_task(task_id)
        if task is None:
            return False
        built = self._build_steps(list(steps))
        if not built:
            raise ValidationError("A task needs at least one step")
        task.steps = built
        task.active_step_id = built[0].id
        task.completed_at = None
        task.last_encouragement = calm_copy.pick_encouragement(0, len(built))
        return True

    # -- survey -----------------------------------------------------------

    def save_survey(self, task_id: str, survey: SurveyInput) -> SessionSummary | None:
        for name in ("ease", "energy_before", "energy_after"):
            value = getattr(survey, name)
            if not 1 <= int(value) <= 5:
                raise ValidationError(f"{name} must be between 1 and 5, got {value}")
        if survey.distractions not in DISTRACTION_LEVELS:
            raise ValidationError(f"Unknown distractions level: {survey.distractions}")

        task = self.get_task(task_id)
        if task is None:
            return None
        summary = SessionSummary(
            ease=survey.ease,
            energy_before=survey.energy_before,
            energy_after=survey.energy_after,
            delta_energy=survey.energy_after - survey.energy_before,
            distractions=survey.distractions,
            felt_easy=survey.ease >= 4,
            note=survey.note,
        )
        task.summary = summary
        if task.completed_at is None:
            task.completed_at = timestamp_ms(self.clock)
        task.active_step_id = None
        self.show_survey_for = None
        if self.active_task_id == task_id:
            self.active_task_id = None
        self.last_encouragement = calm_copy.REFLECTION_CAPTURED
        return summary

    def open_survey(self, task_id: str) -> None:
        self.show_survey_for = task_id

    def close_survey(self) -> None:
        self.show_survey_for = None

    # -- removal ----------------------------------------------------------

    def delete_task(self, task_id: str) -> bool:
        if self.get_task(task_id) is None:
            return False
        self.tasks = [task for task in self.tasks if task.id != task_id]
        if self.active_task_id == task_id:
            self.active_task_id = None
        if self.last_created_task_id == task_id:
            self.last_created_task_id = self.tasks[-1].id if self.tasks else None
        if self.show_survey_for == task_id:
            self.show_survey_for = None
        active = self.active_task()
        self.last_encouragement = (
            active.last_encouragement if active and active.last_encouragement else calm_copy.INITIAL_ENCOURAGEMENT
        )
        return True

    def reset(self) -> None:
        self.tasks = []
        self.active_task_id = None
        self.last_created_task_id = None
        self.auto_start_timer = None
        self.show_survey_for = None
        self.last_encouragement = calm_copy.INITIAL_ENCOURAGEMENT

    def load(
        self,
        tasks: list[Task],
        active_task_id: str | None = None,
        last_created_task_id: str | None = None,
    ) -> None:
        self.reset()
        self.tasks = list(tasks)
        for task in self.tasks:
            _renumber(task.steps)
            if task.active_step_id is not None or task.completed_at is None:
                _repair_active(task)
        self.active_task_id = active_task_id if self.get_task(active_task_id) else None
        self.last_created_task_id = last_created_task_id if self.get_task(last_created_task_id) else None
        active = self.active_task()
        if active is not None and active.last_encouragement:
            self.last_encouragement = active.last_encouragement
