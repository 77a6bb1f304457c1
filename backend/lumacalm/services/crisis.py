"""Keyword detectors for user messages.

Plain case-insensitive substring matching against fixed phrase lists.
Paraphrases and misspellings are missed and unrelated uses of a phrase
are flagged; no stemming or semantic classification is attempted.
"""
from collections.abc import Iterable
from typing import NamedTuple


class CrisisResource(NamedTuple):
    name: str
    phone: str


# Helplines shown on the crisis banner
CRISIS_RESOURCES = (
    CrisisResource("TeleMANAS (India)", "08046110007"),
    CrisisResource("National Crisis Helpline", "1800-891-4416"),
)

# Phrases signalling suicidal ideation or self-harm intent
CRISIS_KEYWORDS = (
    "suicide",
    "kill myself",
    "end it all",
    "want to die",
    "better off dead",
    "hurt myself",
    "self harm",
    "no reason to live",
)

# Phrases that open the breathing exercise panel in the chat client
BREATHING_KEYWORDS = (
    "breathing exercise",
    "calm down",
    "relax",
    "anxiety",
    "stressed",
    "panic",
    "overwhelmed",
    "breathing",
    "calm me",
)


def contains_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Return True if any keyword occurs in the lower-cased text."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def detect_crisis(text: str) -> bool:
    return contains_keyword(text, CRISIS_KEYWORDS)


def wants_breathing_exercise(text: str) -> bool:
    return contains_keyword(text, BREATHING_KEYWORDS)
