"""Encouraging, neutral, no-shame copy shared by the store and the chat fallbacks."""

from __future__ import annotations


INITIAL_ENCOURAGEMENT = "Ready when you are."
FIRST_STEP = "First step ready. Let's make it light and doable."
ALL_STEPS_DONE = "All steps wrapped up. Nicely done!"
SEQUENCE_COMPLETE = "Full sequence complete! Take a breath and celebrate the win."
SPLIT_APPLIED = "Split applied. Micro-actions unlocked."
HELPER_INSERTED = "Helper step inserted. Guided search ready."
LOW_ENERGY_NUDGE = "Gentle nudge en route. Keep it light."
LOW_ENERGY_TIMER = "Starting a steady 2-minute rescue."
REFLECTION_CAPTURED = "Reflection captured. Nice follow-through."

AFFIRMATIONS: tuple[str, ...] = (
    "Nice momentum. Keep it easy and steady.",
    "Another micro-step in the win column.",
    "Streak growing. Next move is ready when you are.",
    "Progress feels good. Enjoy the shift.",
)


def pick_encouragement(completed: int, total: int) -> str:
    if completed == 0:
        return FIRST_STEP
    if completed >= total:
        return ALL_STEPS_DONE
    return AFFIRMATIONS[completed % len(AFFIRMATIONS)]
