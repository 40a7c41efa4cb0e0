from __future__ import annotations

import math
import random
import string
from typing import Literal

from .clock import Clock, RealClock, timestamp_ms
from .errors import ValidationError


ADSLevel = Literal["low", "medium", "high"]

_BASE36 = string.digits + string.ascii_lowercase


def random_suffix(rng: random.Random, length: int = 9) -> str:
    return "".join(rng.choice(_BASE36) for _ in range(length))


def generate_id(
    prefix: str = "",
    clock: Clock | None = None,
    rng: random.Random | None = None,
) -> str:
    stamp = timestamp_ms(clock or RealClock())
    suffix = random_suffix(rng or random.Random())
    body = f"{stamp}-{suffix}"
    return f"{prefix}-{body}" if prefix else body


class IdFactory:
    """Mints `<prefix>-<ms>-<suffix>` ids from an injected clock and random source."""

    def __init__(self, clock: Clock | None = None, rng: random.Random | None = None) -> None:
        self.clock = clock or RealClock()
        self.rng = rng or random.Random()

    def new(self, prefix: str) -> str:
        return generate_id(prefix, clock=self.clock, rng=self.rng)

    def session_token(self) -> str:
        return f"s-{timestamp_ms(self.clock)}-{random_suffix(self.rng, 7)}"


def format_time(seconds: int) -> str:
    total = max(0, int(seconds))
    minutes, sec = divmod(total, 60)
    return f"{minutes}:{sec:02d}"


def round_minutes(value: float) -> int:
    # Half-up rounding, floored at one minute.
    minutes = float(value)
    if not math.isfinite(minutes):
        raise ValidationError(f"Invalid duration: {value!r}")
    return max(1, int(minutes + 0.5))


def calculate_ads(
    tts_ms: int | None,
    stuck_count: int,
    abandoned_count: int,
    carryovers: int,
) -> int:
    """Activation Difficulty Score in [0, 100].

    Time-to-start contributes 10/25/40 points past 5/15/30 minutes; friction
    counters contribute 10 points per stuck (max 30), 10 per abandon (max 20)
    and 5 per carryover (max 10).
    """
    score = 0
    if tts_ms:
        minutes = tts_ms / 60000
        if minutes > 30:
            score += 40
        elif minutes > 15:
            score += 25
        elif minutes > 5:
            score += 10

    score += min(stuck_count * 10, 30)
    score += min(abandoned_count * 10, 20)
    score += min(carryovers * 5, 10)
    return max(0, min(score, 100))


def get_ads_level(score: int) -> ADSLevel:
    if score >= 70:
        return "high"
    if score >= 40:
        return "medium"
    return "low"


def universal_template_steps(task_title: str) -> list[dict[str, object]]:
    return [
        {"text": f'Break down "{task_title}" into smaller parts', "duration_min": 2},
        {"text": "Gather necessary materials or information", "duration_min": 2},
        {"text": "Start with the first small piece", "duration_min": 2},
        {"text": "Review and adjust as needed", "duration_min": 2},
    ]
