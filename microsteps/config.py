from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from .db import default_db_path


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    db_path: Path
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    provider_timeout: float = 8.0
    breakdown_rate_limit: int = 10
    chat_rate_limit: int = 20
    rate_limit_window_seconds: float = 60.0
    log_level: str = "INFO"
    verbose_api_logging: bool = False

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        raw_db = os.environ.get("MICROSTEPS_DB", "").strip()
        api_key = (
            os.environ.get("MICROSTEPS_OPENAI_API_KEY", "").strip()
            or os.environ.get("OPENAI_API_KEY", "").strip()
        )
        return cls(
            db_path=Path(db_path or raw_db or default_db_path()),
            openai_api_key=api_key or None,
            openai_model=os.environ.get("MICROSTEPS_OPENAI_MODEL", "").strip() or "gpt-4o-mini",
            provider_timeout=_env_float("MICROSTEPS_PROVIDER_TIMEOUT", 8.0),
            breakdown_rate_limit=_env_int("MICROSTEPS_BREAKDOWN_RATE_LIMIT", 10),
            chat_rate_limit=_env_int("MICROSTEPS_CHAT_RATE_LIMIT", 20),
            log_level=os.environ.get("MICROSTEPS_LOG_LEVEL", "").strip().upper() or "INFO",
            verbose_api_logging=_env_flag("MICROSTEPS_VERBOSE_API_LOGGING"),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
