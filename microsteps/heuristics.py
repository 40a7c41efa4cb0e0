"""Rule tables and local replies for the chat fallback path.

Every table is an ordered list of ``(pattern, label)`` pairs evaluated top to
bottom; the first match wins. Keeping them as data lets each rule set be
exercised on its own.
"""

from __future__ import annotations

import random
import re
from typing import Pattern, Sequence

Rule = tuple[Pattern[str], str]


CRISIS_PHRASES: tuple[str, ...] = (
    "suicide",
    "kill myself",
    "end my life",
    "want to die",
    "can't go on",
    "cant go on",
    "no reason to live",
    "i am going to kill myself",
    "i will kill myself",
)

EMOTION_RULES: list[Rule] = [
    (re.compile(r"\blonely\b|\balone\b"), "lonely"),
    (re.compile(r"\bsad\b|\bdown\b|\bdepressed\b"), "sad"),
    (re.compile(r"\banxious\b|\bworried\b|\bstressed\b"), "anxious"),
    (re.compile(r"\btired\b|\bexhausted\b"), "tired"),
    (re.compile(r"\bfrustrat|\bangry\b"), "frustrated"),
    (re.compile(r"\bbored\b"), "bored"),
    (re.compile(r"\bhappy\b|\bexcited\b"), "happy"),
]

INTENT_RULES: list[Rule] = [
    (re.compile(r"\b(music|songs?|playlist|listen(ing)? to)\b"), "music"),
    (re.compile(r"\b(breath\w*|breathe)\b"), "breathing"),
    (re.compile(r"\b(draw\w*|doodle|paint\w*|sketch\w*|art)\b"), "art"),
    (re.compile(r"\b(walk\w*|stretch\w*|move|movement|exercise|dance)\b"), "movement"),
    (re.compile(r"\b(water|drink|hydrat\w*|thirsty)\b"), "hydration"),
    (re.compile(r"\b(journal\w*|diary|jot|writ(e|ing)\s+(it\s+)?down|brain dump)\b"), "journaling"),
]

FOLLOW_THROUGH_RULES: list[Rule] = [
    (re.compile(r"^\s*(no|nah|nope|not now|not really|maybe later|i don'?t want)\b"), "decline"),
    (re.compile(r"^\s*(yes|yeah|yep|yup|sure|ok|okay|alright|let'?s|sounds good|i'?ll try|why not)\b"), "affirm"),
]


CRISIS_REPLY = (
    "I'm really sorry you're feeling this way. If you're thinking about hurting yourself or ending your life, "
    "please seek immediate help. If you are in the United States you can call or text 988 for the Suicide & "
    "Crisis Lifeline, or call emergency services right away. If you're elsewhere, please contact your local "
    "emergency number or a national crisis line. I can stay here and listen, but I'm not a substitute for "
    "professional help. Would you like resources or help finding someone to talk to now?"
)

PROVIDER_FALLBACK_REPLY = (
    "Thanks for sharing. I'm here to listen. Tell me more about how you're feeling, "
    "or we can try a tiny next step together."
)

EMPTY_REPLY = "I'm here when you're ready to share. What's on your mind?"

SUGGESTIONS: tuple[str, ...] = (
    "Would you like to try a tiny 2-minute step to help, like a quick breathing break?",
    "If it helps, tell me one small thing that would make this moment a bit easier.",
    "I can listen. What part of this feels heaviest right now?",
)

EMPATHY_OPENERS: dict[str, str] = {
    "lonely": "It sounds like you're feeling lonely. I'm really glad you reached out.",
    "sad": "I'm sorry you're feeling sad.",
    "anxious": "That sounds worrying. It's understandable to feel anxious.",
    "tired": "You sound exhausted. A tiny break can sometimes help.",
    "frustrated": "That sounds frustrating. I'm sorry you're dealing with that.",
    "bored": "I hear you. Feeling bored can be heavy too.",
}

HAPPY_REPLIES: tuple[str, ...] = (
    "That's great to hear. Tell me more about what's going well!",
    "I love hearing that. What made today feel good?",
)

SHORT_REPLIES: tuple[str, ...] = (
    "Hey, how are you feeling right now?",
    "Hi, what's up for you today?",
    "Nice to hear from you. Want to tell me more?",
)

INTENT_REPLIES: dict[str, tuple[str, ...]] = {
    "music": (
        "Music can shift a mood fast. Want to pick one song and just listen for its first minute?",
        "How about putting on one song you love and letting it play while you settle?",
    ),
    "breathing": (
        "Let's try a short breathing break: in for 4, hold for 4, out for 6. Want to do three rounds together?",
        "A slow breath can help. Would you like to try box breathing for one minute?",
    ),
    "art": (
        "Doodling can be a gentle reset. Want to grab any pen and draw shapes for two minutes?",
        "How about a tiny sketch of something in front of you? No skill needed, just lines.",
    ),
    "movement": (
        "Moving a little can help. Want to stand up and stretch your arms overhead for a minute?",
        "How about a two-minute walk, even just around the room?",
    ),
    "hydration": (
        "Good call. Want to pour a glass of water and take a few slow sips?",
        "Water is a kind little reset. Could you grab a drink right now?",
    ),
    "journaling": (
        "Writing it down can lighten the load. Want to jot three lines about how you feel?",
        "How about a two-minute brain dump on paper, no editing allowed?",
    ),
}

FOLLOW_THROUGH_REPLIES: dict[str, tuple[str, ...]] = {
    "music": (
        "Lovely. Press play and let the first minute wash over you. Tell me how it feels after.",
        "Great. Pick the song, close your eyes if that feels okay, and just listen. I'll be here.",
    ),
    "breathing": (
        "Great. Breathe in for 4... hold for 4... out for 6. Repeat that twice more, then tell me how you feel.",
        "Let's go: slow breath in through your nose, pause, long breath out. Three rounds, no rush.",
    ),
    "art": (
        "Nice. Set a two-minute timer and let the pen wander. Nothing has to look good.",
        "Go for it. Circles, lines, anything. Share how it went if you like.",
    ),
    "movement": (
        "Great. Stand up, reach up high, then roll your shoulders a few times. How does that feel?",
        "Nice. Take that little walk and notice three things you see. I'll be here when you're back.",
    ),
    "hydration": (
        "Good. Take a few slow sips and notice the cool water. Small care counts.",
        "Nice. Grab that glass and sip slowly. Let me know when you're back.",
    ),
    "journaling": (
        "Great. Write the first thing on your mind, then two more lines. Spelling doesn't matter.",
        "Go ahead and dump it all on the page for two minutes. I'll be here after.",
    ),
}

DECLINE_REPLIES: tuple[str, ...] = (
    "That's completely okay. We can just talk. What's on your mind right now?",
    "No pressure at all. Would you rather tell me a bit more about how things are going?",
)

GENERIC_OPENER = "Thanks for sharing."

SYSTEM_PROMPT = """You are a warm, conversational, and compassionate listener for people who are feeling lonely, low, or overwhelmed.
Your goals:
- Validate feelings and reflect what the user says (e.g., "It sounds like you're feeling...")
- Ask open, gentle questions to encourage sharing (e.g., "Would you like to tell me more about that?")
- Offer small, practical suggestions when appropriate (short, optional 1-3 step ideas)
- Avoid giving medical or legal advice; always encourage professional help for serious concerns
- If the user mentions self-harm, suicide, or immediate danger, respond with supportive text and strongly encourage contacting emergency services and crisis hotlines (do not attempt to counsel clinically)

Keep replies conversational and concise (a few short paragraphs). Use first-person, empathetic language. When useful, suggest one small next step and ask if the user wants to try it."""


def emotion_instruction(emotion: str) -> str:
    return (
        f"The user's last message suggests they feel {emotion}. Begin your reply with a concise, validating "
        f"reflection (e.g., \"It sounds like you're feeling {emotion}.\"). Then ask a gentle open question "
        "or offer a small step."
    )


def match_rules(rules: Sequence[Rule], text: str) -> str | None:
    lowered = (text or "").lower()
    if not lowered:
        return None
    for pattern, label in rules:
        if pattern.search(lowered):
            return label
    return None


def detect_crisis(text: str) -> bool:
    lowered = (text or "").lower()
    return any(phrase in lowered for phrase in CRISIS_PHRASES)


def detect_emotion(text: str) -> str | None:
    return match_rules(EMOTION_RULES, text)


def detect_intent(text: str) -> str | None:
    return match_rules(INTENT_RULES, text)


def detect_follow_through(text: str) -> str | None:
    return match_rules(FOLLOW_THROUGH_RULES, text)


def pick_reply(candidates: Sequence[str], previous: str | None, rng: random.Random) -> str:
    """Choose a candidate, avoiding an exact (trimmed) repeat of the previous reply."""
    last = (previous or "").strip()
    fresh = [item for item in candidates if item.strip() != last]
    return rng.choice(fresh or list(candidates))


def local_reply(user_text: str, previous_reply: str | None, rng: random.Random) -> str:
    text = (user_text or "").strip()
    if not text:
        return EMPTY_REPLY

    suggested = detect_intent(previous_reply or "")
    answer = detect_follow_through(text)
    if suggested and answer == "affirm":
        return pick_reply(FOLLOW_THROUGH_REPLIES[suggested], previous_reply, rng)
    if suggested and answer == "decline":
        return pick_reply(DECLINE_REPLIES, previous_reply, rng)

    intent = detect_intent(text)
    emotion = detect_emotion(text)
    opener = EMPATHY_OPENERS.get(emotion or "")

    if intent:
        candidates = INTENT_REPLIES[intent]
        if opener:
            candidates = tuple(f"{opener} {reply}" for reply in candidates)
        return pick_reply(candidates, previous_reply, rng)

    if emotion == "happy":
        return pick_reply(HAPPY_REPLIES, previous_reply, rng)
    if opener:
        return pick_reply([f"{opener} {item}" for item in SUGGESTIONS], previous_reply, rng)

    if len(text.split()) <= 3:
        return pick_reply(SHORT_REPLIES, previous_reply, rng)
    return pick_reply([f"{GENERIC_OPENER} {item}" for item in SUGGESTIONS], previous_reply, rng)
