"""Rule-ordered intent extraction: mood, decade and artist from chat text.

Each detector walks a fixed, ordered rule table from `lexicon` and returns the
first hit. Nothing here does real language understanding; the heuristics are
deliberately plain so that they stay deterministic and easy to test.
"""

from __future__ import annotations

import logging

from moodflix.services import lexicon
from moodflix.services.models import DecadeWindow, Intent

logger = logging.getLogger(__name__)

MIN_NAME_WORDS = 2
MAX_NAME_WORDS = 4


def detect_mood(message: str) -> str:
    """Return the first mood whose keywords appear, or the default mood."""

    for mood, pattern in lexicon.MOOD_PATTERNS:
        if pattern.search(message):
            return mood
    return lexicon.DEFAULT_MOOD


def mood_explicitly_requested(message: str, mood: str) -> bool:
    """True unless `mood` is only the default because nothing matched."""

    if mood != lexicon.DEFAULT_MOOD:
        return True
    return bool(lexicon.MOOD_PATTERN_MAP[lexicon.DEFAULT_MOOD].search(message))


def detect_decade(message: str) -> DecadeWindow | None:
    lowered = message.lower()
    for token, (year_from, year_to) in lexicon.DECADE_PATTERNS:
        if token in lowered:
            return DecadeWindow(year_from, year_to)
    return None


def detect_artist(message: str) -> str | None:
    """Extract a performer name from the message, Title-Cased, or None.

    Patterns are tried in order. A candidate is accepted when at least two
    words survive the stopword filter and the raw candidate has at most four
    words; otherwise the next pattern is tried.
    """

    for pattern in lexicon.ARTIST_PATTERNS:
        match = pattern.search(message)
        if not match or not match.group(1):
            continue
        name = _strip_filler(match.group(1))
        words = name.lower().split()
        meaningful = [word for word in words if word not in lexicon.COMMON_WORDS]
        if len(meaningful) < MIN_NAME_WORDS or len(name) < 3:
            continue
        if len(words) > MAX_NAME_WORDS:
            continue
        proper_name = " ".join(word[:1].upper() + word[1:].lower() for word in meaningful)
        logger.info("Detected artist %r via pattern %s", proper_name, pattern.pattern)
        return proper_name
    return None


def _strip_filler(candidate: str) -> str:
    name = candidate.strip()
    name = lexicon.ARTIST_LEADING_FILLER.sub("", name, count=1)
    name = lexicon.ARTIST_TRAILING_FILLER.sub("", name, count=1)
    return name.strip()


def genres_for_mood(mood: str) -> tuple[str, ...]:
    return lexicon.MOOD_GENRES.get(mood, ())


def extract_intent(message: str) -> Intent:
    mood = detect_mood(message)
    return Intent(
        mood=mood,
        decade=detect_decade(message),
        artist=detect_artist(message),
        explicit_mood=mood_explicitly_requested(message, mood),
    )
