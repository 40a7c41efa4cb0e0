from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Any
import unittest

from openai import OpenAIError

from microsteps.completion import OpenAICompleter, build_completer
from microsteps.config import Settings
from microsteps.errors import ProviderError
from microsteps.models import ChatTurn


class _FakeCompletions:
    def __init__(self, content: str | None = None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.requests: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> SimpleNamespace:
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions: _FakeCompletions) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


class TestOpenAICompleter(unittest.TestCase):
    def test_sends_system_prompt_then_transcript(self) -> None:
        completions = _FakeCompletions(content="  hello  ")
        completer = OpenAICompleter(api_key="test", model="m", max_tokens=42, client=_client(completions))

        reply = completer.complete("be kind", [ChatTurn(role="user", content="hi")])

        self.assertEqual(reply, "hello")
        request = completions.requests[0]
        self.assertEqual(request["model"], "m")
        self.assertEqual(request["max_tokens"], 42)
        self.assertEqual(
            request["messages"],
            [{"role": "system", "content": "be kind"}, {"role": "user", "content": "hi"}],
        )
        self.assertNotIn("response_format", request)

    def test_json_mode(self) -> None:
        completions = _FakeCompletions(content="{}")
        OpenAICompleter(api_key="test", json_mode=True, client=_client(completions)).complete("s", [])
        self.assertEqual(completions.requests[0]["response_format"], {"type": "json_object"})

    def test_failures_become_provider_errors(self) -> None:
        for completions in (_FakeCompletions(content="   "), _FakeCompletions(error=OpenAIError("boom"))):
            completer = OpenAICompleter(api_key="test", client=_client(completions))
            with self.assertRaises(ProviderError):
                completer.complete("s", [ChatTurn(role="user", content="hi")])


class TestBuildCompleter(unittest.TestCase):
    def test_disabled_without_key(self) -> None:
        self.assertIsNone(build_completer(Settings(db_path=Path("unused.sqlite"))))

    def test_enabled_with_key(self) -> None:
        settings = Settings(db_path=Path("unused.sqlite"), openai_api_key="sk-test", openai_model="m")
        completer = build_completer(settings, max_tokens=500, json_mode=True)
        assert isinstance(completer, OpenAICompleter)
        self.assertEqual(completer.model, "m")
        self.assertTrue(completer.json_mode)


if __name__ == "__main__":
    unittest.main()
