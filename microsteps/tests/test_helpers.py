from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
import random
import shutil
from typing import Sequence
import uuid

from microsteps.clock import FakeClock
from microsteps.models import ChatTurn
from microsteps.utils import IdFactory


@contextmanager
def local_tmp_dir():
    base = Path(__file__).resolve().parent / "_tmp"
    base.mkdir(parents=True, exist_ok=True)
    for child in base.iterdir():
        if child.is_dir():
            shutil.rmtree(child, ignore_errors=True)
    path = base / uuid.uuid4().hex
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


def fake_clock() -> FakeClock:
    return FakeClock(start=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


def seeded_ids(clock: FakeClock, seed: int = 7) -> IdFactory:
    return IdFactory(clock, random.Random(seed))


class FakeCompleter:
    """Records every call; returns `reply` or raises `error`."""

    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: list[tuple[str, list[ChatTurn]]] = []

    def complete(self, system_prompt: str, transcript: Sequence[ChatTurn]) -> str:
        self.calls.append((system_prompt, list(transcript)))
        if self.error is not None:
            raise self.error
        return self.reply
