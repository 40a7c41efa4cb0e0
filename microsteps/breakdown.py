from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import re
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as SchemaError

from .completion import Completer
from .errors import ContentPolicyError, ProviderError, ValidationError
from .models import ChatTurn
from .rate_limit import RateLimiter
from .utils import universal_template_steps


logger = logging.getLogger(__name__)

MAX_STEPS = 5

UNSAFE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"violence", re.IGNORECASE),
    re.compile(r"harm", re.IGNORECASE),
    re.compile(r"illegal", re.IGNORECASE),
)

BREAKDOWN_SYSTEM_PROMPT = """You are a helpful assistant that breaks down tasks into 3-5 micro-steps. Each step should be:
- Very small and actionable (2 minutes or less each)
- Clear and specific
- Encouraging and supportive
- Focused on getting started, not perfection

Return only a JSON object of steps with this exact structure:
{
  "steps": [
    {"text": "step description", "duration_min": 1 or 2},
    ...
  ]
}

Keep steps to 1-2 minutes maximum. Use simple, calm language."""


class BreakdownStep(BaseModel):
    text: str = Field(min_length=1, max_length=200)
    duration_min: int = 2

    @field_validator("text", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("duration_min", mode="before")
    @classmethod
    def _coerce_duration(cls, value: Any) -> int:
        # Out-of-range durations become 2 instead of failing the batch.
        return value if value in (1, 2) and not isinstance(value, bool) else 2


class BreakdownPayload(BaseModel):
    steps: list[BreakdownStep] = Field(min_length=1)


@dataclass(frozen=True)
class BreakdownResult:
    steps: list[dict[str, Any]]
    fallback: bool

    def to_dict(self) -> dict[str, Any]:
        return {"steps": self.steps, "fallback": self.fallback}


def check_title(task_title: Any) -> str:
    if not isinstance(task_title, str) or not task_title.strip():
        raise ValidationError("Invalid task title")
    if any(pattern.search(task_title) for pattern in UNSAFE_PATTERNS):
        logger.warning("BREAKDOWN_CONTENT_REJECTED")
        raise ContentPolicyError("Task title contains inappropriate content")
    return task_title


def parse_breakdown(content: str) -> list[dict[str, Any]]:
    try:
        payload = BreakdownPayload.model_validate(json.loads(content))
    except (json.JSONDecodeError, SchemaError) as exc:
        raise ProviderError(f"malformed breakdown output: {exc}") from exc
    return [step.model_dump() for step in payload.steps[:MAX_STEPS]]


class BreakdownService:
    def __init__(self, limiter: RateLimiter, completer: Completer | None = None) -> None:
        self.limiter = limiter
        self.completer = completer

    def breakdown(self, task_title: Any, client_id: str = "unknown") -> BreakdownResult:
        self.limiter.hit(client_id)
        title = check_title(task_title)

        if self.completer is None:
            return BreakdownResult(steps=universal_template_steps(title), fallback=True)

        prompt = f'Break down this task into 3-5 micro-steps (1-2 minutes each): "{title}"'
        try:
            content = self.completer.complete(BREAKDOWN_SYSTEM_PROMPT, [ChatTurn(role="user", content=prompt)])
            steps = parse_breakdown(content)
        except Exception:
            logger.exception("Breakdown delegation failed, using template steps")
            return BreakdownResult(steps=universal_template_steps(title), fallback=True)
        return BreakdownResult(steps=steps, fallback=False)
