from __future__ import annotations

import json
import unittest

from microsteps.breakdown import BreakdownService, parse_breakdown
from microsteps.errors import ContentPolicyError, ProviderError, RateLimitError, ValidationError
from microsteps.rate_limit import RateLimiter
from microsteps.tests.test_helpers import FakeCompleter, fake_clock


def _payload(*steps: tuple[str, object]) -> str:
    return json.dumps({"steps": [{"text": text, "duration_min": minutes} for text, minutes in steps]})


class TestParseBreakdown(unittest.TestCase):
    def test_coerces_durations_and_truncates(self) -> None:
        content = _payload(*((f" step {index} ", index) for index in range(7)))
        steps = parse_breakdown(content)

        self.assertEqual(len(steps), 5)
        self.assertEqual(steps[0], {"text": "step 0", "duration_min": 2})
        self.assertEqual(steps[1]["duration_min"], 1)
        self.assertEqual(steps[2]["duration_min"], 2)
        self.assertEqual(steps[4]["duration_min"], 2)

    def test_malformed_output(self) -> None:
        for content in ("not json", "[]", json.dumps({"steps": []}), _payload(("", 1))):
            with self.assertRaises(ProviderError):
                parse_breakdown(content)


class TestBreakdownService(unittest.TestCase):
    def _service(self, completer: FakeCompleter | None = None, limit: int = 10) -> BreakdownService:
        return BreakdownService(limiter=RateLimiter(limit, 60, clock=fake_clock()), completer=completer)

    def test_provider_steps(self) -> None:
        completer = FakeCompleter(reply=_payload(("Open laptop", 1), ("Write one line", 2), ("Save", 3)))
        result = self._service(completer).breakdown("Write report")

        self.assertFalse(result.fallback)
        self.assertEqual([step["duration_min"] for step in result.steps], [1, 2, 2])
        self.assertIn('"Write report"', completer.calls[0][1][0].content)

    def test_template_without_provider(self) -> None:
        result = self._service().breakdown("Clean kitchen")
        self.assertTrue(result.fallback)
        self.assertEqual(len(result.steps), 4)
        self.assertEqual(result.to_dict()["fallback"], True)

    def test_template_when_provider_misbehaves(self) -> None:
        for completer in (FakeCompleter(reply="sorry, no JSON"), FakeCompleter(error=ProviderError("down"))):
            result = self._service(completer).breakdown("Clean kitchen")
            self.assertTrue(result.fallback)
            self.assertEqual(len(result.steps), 4)

    def test_rejects_bad_titles_before_delegating(self) -> None:
        completer = FakeCompleter(reply=_payload(("x", 1)))
        service = self._service(completer)

        with self.assertRaises(ContentPolicyError):
            service.breakdown("Plan some illegal fun")
        for bad in ("", "   ", None, 42):
            with self.assertRaises(ValidationError):
                service.breakdown(bad)
        self.assertEqual(completer.calls, [])

    def test_rate_limit(self) -> None:
        service = self._service(limit=10)
        for _ in range(10):
            service.breakdown("Clean kitchen", client_id="9.9.9.9")
        with self.assertRaises(RateLimitError):
            service.breakdown("Clean kitchen", client_id="9.9.9.9")


if __name__ == "__main__":
    unittest.main()
