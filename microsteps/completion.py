from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence

from openai import OpenAI, OpenAIError

from .config import Settings
from .errors import ProviderError
from .models import ChatTurn


logger = logging.getLogger(__name__)


class Completer(Protocol):
    def complete(self, system_prompt: str, transcript: Sequence[ChatTurn]) -> str:
        ...


class OpenAICompleter:
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout: float = 8.0,
        temperature: float = 0.7,
        max_tokens: int = 800,
        json_mode: bool = False,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.json_mode = json_mode
        # No client-side retries: a slow provider falls back instead of stacking timeouts.
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(self, system_prompt: str, transcript: Sequence[ChatTurn]) -> str:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(turn.to_dict() for turn in transcript)
        request: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            completion = self.client.chat.completions.create(**request)
        except OpenAIError as exc:
            raise ProviderError(f"completion request failed: {exc}") from exc

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content or not content.strip():
            raise ProviderError("completion returned no content")
        return content.strip()


def build_completer(settings: Settings, max_tokens: int = 800, json_mode: bool = False) -> Completer | None:
    if not settings.openai_api_key:
        logger.info("No completion provider configured; using local fallbacks")
        return None
    return OpenAICompleter(
        api_key=settings.openai_api_key,
        model=settings.openai_model,
        timeout=settings.provider_timeout,
        max_tokens=max_tokens,
        json_mode=json_mode,
    )
