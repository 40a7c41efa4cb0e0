from __future__ import annotations

import random
import unittest

from microsteps import heuristics
from microsteps.chat import ChatTurnProcessor, normalize_messages
from microsteps.errors import ProviderError, RateLimitError, ValidationError
from microsteps.rate_limit import RateLimiter
from microsteps.session_table import SessionTable
from microsteps.tests.test_helpers import FakeCompleter, fake_clock, seeded_ids


def _user(text: str) -> dict[str, str]:
    return {"role": "user", "content": text}


def _assistant(text: str) -> dict[str, str]:
    return {"role": "assistant", "content": text}


class TestNormalize(unittest.TestCase):
    def test_rejects_non_lists(self) -> None:
        for bad in (None, "hello", [], {"role": "user"}):
            with self.assertRaises(ValidationError):
                normalize_messages(bad)

    def test_drops_blank_and_maps_roles(self) -> None:
        turns = normalize_messages([_user("  "), {"role": "bot", "content": "hi"}, {"content": 5}, "junk"])
        self.assertEqual([(turn.role, turn.content) for turn in turns], [("assistant", "hi"), ("user", "5")])


class TestChatTurnProcessor(unittest.TestCase):
    def _processor(self, completer: FakeCompleter | None = None, limit: int = 20) -> ChatTurnProcessor:
        clock = fake_clock()
        self.sessions = SessionTable(clock=clock)
        return ChatTurnProcessor(
            sessions=self.sessions,
            limiter=RateLimiter(limit, 60, clock=clock),
            completer=completer,
            clock=clock,
            rng=random.Random(5),
            ids=seeded_ids(clock),
        )

    def test_crisis_never_reaches_the_provider(self) -> None:
        completer = FakeCompleter(reply="should not be used")
        processor = self._processor(completer)

        result = processor.process([_user("I want to end my life")], session_id="s-1")

        self.assertTrue(result.crisis)
        self.assertEqual(result.reply, heuristics.CRISIS_REPLY)
        self.assertEqual(completer.calls, [])
        self.assertEqual(result.to_dict()["crisis"], True)
        self.assertEqual([turn.role for turn in self.sessions.history("s-1")], ["user", "assistant"])

    def test_local_fallback_without_provider(self) -> None:
        processor = self._processor()
        result = processor.process([_user("hi")], session_id="s-1")

        self.assertTrue(result.fallback)
        self.assertIn(result.reply, heuristics.SHORT_REPLIES)
        self.assertNotIn("crisis", result.to_dict())

    def test_provider_reply_with_emotion_hint(self) -> None:
        completer = FakeCompleter(reply="It sounds like you're feeling lonely.")
        processor = self._processor(completer)

        result = processor.process([_user("I feel lonely tonight")], session_id="s-1")

        self.assertFalse(result.fallback)
        self.assertEqual(result.reply, "It sounds like you're feeling lonely.")
        system_prompt, transcript = completer.calls[0]
        self.assertTrue(system_prompt.startswith(heuristics.SYSTEM_PROMPT))
        self.assertIn(heuristics.emotion_instruction("lonely"), system_prompt)
        self.assertEqual(transcript[-1].content, "I feel lonely tonight")
        self.assertEqual(result.to_dict(), {"reply": result.reply, "sessionId": "s-1"})

    def test_provider_failure_falls_back(self) -> None:
        processor = self._processor(FakeCompleter(error=ProviderError("timeout")))
        result = processor.process([_user("rough day at work")], session_id="s-1")

        self.assertTrue(result.fallback)
        self.assertEqual(result.reply, heuristics.PROVIDER_FALLBACK_REPLY)

    def test_long_transcripts_are_bounded(self) -> None:
        processor = self._processor()
        messages = [_user(f"u{i}") if i % 2 == 0 else _assistant(f"a{i}") for i in range(60)]

        processor.process(messages, session_id="s-1")

        stored = self.sessions.history("s-1")
        self.assertLessEqual(len(stored), 50)
        self.assertEqual(stored[0].role, "user")
        self.assertEqual(stored[-1].role, "assistant")

    def test_growing_conversation_stays_capped(self) -> None:
        processor = self._processor(limit=100)
        for i in range(30):
            history = [{"role": turn.role, "content": turn.content} for turn in self.sessions.history("s-1")]
            processor.process([*history, _user(f"message {i}")], session_id="s-1")

            stored = self.sessions.history("s-1")
            self.assertLessEqual(len(stored), 50)
            self.assertEqual(stored[0].role, "user")
            self.assertEqual(stored[-1].role, "assistant")
        self.assertGreaterEqual(len(self.sessions.history("s-1")), 48)

    def test_nothing_saved_without_a_user_turn(self) -> None:
        processor = self._processor()

        blank = processor.process([_user("   ")], session_id="s-blank")
        assistant_only = processor.process([_assistant("hello from me")], session_id="s-assistant")

        self.assertTrue(blank.fallback)
        self.assertTrue(assistant_only.fallback)
        self.assertNotIn("s-blank", self.sessions)
        self.assertNotIn("s-assistant", self.sessions)
        self.assertEqual(len(self.sessions), 0)

    def test_session_id_resolution(self) -> None:
        processor = self._processor()

        self.assertEqual(processor.process([_user("hi")], session_id="explicit", cookie_session="c").session_id, "explicit")
        self.assertEqual(processor.process([_user("hi")], cookie_session="cookie").session_id, "cookie")
        self.assertRegex(processor.process([_user("hi")]).session_id, r"^s-\d+-[0-9a-z]{7}$")

    def test_stored_history_used_when_client_sends_nothing_usable(self) -> None:
        processor = self._processor()
        processor.process([_user("hello there")], session_id="s-1")

        processor.process([_user("   ")], session_id="s-1")

        stored = self.sessions.history("s-1")
        self.assertEqual(len(stored), 3)
        self.assertEqual(stored[0].content, "hello there")

    def test_local_reply_does_not_repeat_itself(self) -> None:
        processor = self._processor()
        previous = heuristics.SHORT_REPLIES[0]

        result = processor.process([_user("hey"), _assistant(previous), _user("hi")], session_id="s-1")

        self.assertIn(result.reply, heuristics.SHORT_REPLIES)
        self.assertNotEqual(result.reply, previous)

    def test_rate_limit(self) -> None:
        processor = self._processor(limit=2)
        processor.process([_user("one")], client_id="1.2.3.4")
        processor.process([_user("two")], client_id="1.2.3.4")
        with self.assertRaises(RateLimitError):
            processor.process([_user("three")], client_id="1.2.3.4")


if __name__ == "__main__":
    unittest.main()
