"""Static lookup tables shared by intent extraction and TMDb searches.

Everything here is read-only at runtime: mappings are wrapped in
``MappingProxyType`` and ordered rules are tuples, so the tables can be
shared across concurrent requests.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType

DEFAULT_MOOD = "cozy"

# Order is the tie-break when several moods co-occur: first declared wins.
MOOD_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("happy", re.compile(r"\b(happy|joyful|cheerful|upbeat|fun|laugh|funny|comedy|hilarious)\b", re.I)),
    ("sad", re.compile(r"\b(sad|down|depressed|melancholy|cry|emotional|heartbreak)\b", re.I)),
    ("excited", re.compile(r"\b(excited|thrilling|action|adventure|adrenaline|intense|epic)\b", re.I)),
    ("relaxed", re.compile(r"\b(relax|chill|calm|peaceful|easy|light)\b", re.I)),
    ("cozy", re.compile(r"\b(cozy|cosy|comfort|warm|feel.?good|heartwarming|wholesome)\b", re.I)),
    ("nostalgic", re.compile(r"\b(nostalgic|nostalgia|classic|old|remember|childhood|retro)\b", re.I)),
    ("romantic", re.compile(r"\b(romantic|romance|love|date|couple|relationship)\b", re.I)),
    ("scared", re.compile(r"\b(scared|horror|scary|thriller|suspense|creepy|terrifying)\b", re.I)),
    ("thoughtful", re.compile(r"\b(thoughtful|think|intellectual|documentary|deep|philosophical|mind)\b", re.I)),
    ("curious", re.compile(r"\b(curious|mystery|detective|crime|whodunit|investigate)\b", re.I)),
)

MOOD_PATTERN_MAP = MappingProxyType(dict(MOOD_PATTERNS))

# Matched as plain lowercase substrings, in this order.
DECADE_PATTERNS: tuple[tuple[str, tuple[int, int]], ...] = (
    ("80s", (1980, 1989)),
    ("1980s", (1980, 1989)),
    ("90s", (1990, 1999)),
    ("1990s", (1990, 1999)),
    ("2000s", (2000, 2009)),
    ("2010s", (2010, 2019)),
    ("2020s", (2020, 2029)),
)

# More specific multi-keyword patterns come before the capitalised-phrase
# catch-alls. Only the last one is case-sensitive.
ARTIST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:starring|featuring|with)\s+([a-z]+(?:\s+[a-z]+)+)\s*$", re.I),
    re.compile(r"movies?\s+(?:with|starring|featuring|by)\s+(.+?)(?:\s*$|\s*,|\s+and\s|\s+in\s|\s+from\s)", re.I),
    re.compile(r"films?\s+(?:with|starring|featuring|by)\s+(.+?)(?:\s*$|\s*,)", re.I),
    re.compile(r"(?:show|find|get|recommend)\s+me\s+(.+?)\s+(?:movies?|films?)", re.I),
    re.compile(r"(?:show|find|get|recommend)\s+me\s+some\s+(.+?)\s+(?:movies?|films?)", re.I),
    re.compile(r"(?:what|which)\s+movies?\s+(?:has|did|does|is)\s+(.+?)\s+(?:in|star|act|been)", re.I),
    re.compile(r"^(?:now\s+)?(?:show\s+me\s+)?([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)\s+(?:movies?|films?)$", re.I),
    re.compile(r"^(?:please\s+)?([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)\s*$", re.I),
    re.compile(r"\b([A-Z][a-z]+\s+[A-Z][a-z]+)\b"),
)

ARTIST_LEADING_FILLER = re.compile(r"^(now|please|some|more)\s+", re.I)
ARTIST_TRAILING_FILLER = re.compile(r"\s+(please|now)$", re.I)

COMMON_WORDS = frozenset(
    {
        "a", "an", "the", "some", "any", "good", "great", "best", "top", "new", "old",
        "funny", "scary", "romantic", "action", "comedy", "drama", "thriller", "horror",
        "classic", "modern", "recent", "popular", "famous", "cozy", "feel", "more",
        "something", "anything", "nothing", "everything", "movie", "movies", "film", "films",
        "show", "me", "now", "please", "can", "you", "i", "want", "like", "love", "need",
        "find", "get", "recommend", "suggest", "give",
        # genre words
        "romance", "adventure", "mystery", "fantasy", "sci-fi", "scifi", "animation",
        "documentary", "crime", "war", "western", "musical", "family", "history",
        # words that introduce the artist
        "starring", "featuring", "with", "by", "from",
    }
)

# Genre names as TMDb reports them, used to post-filter an artist's films.
MOOD_GENRES = MappingProxyType(
    {
        "happy": ("Comedy", "Animation", "Family"),
        "sad": ("Drama", "Romance"),
        "excited": ("Action", "Adventure", "Thriller"),
        "relaxed": ("Comedy", "Family", "Animation"),
        "cozy": ("Comedy", "Family", "Animation", "Romance"),
        "nostalgic": ("Drama", "Comedy", "Family"),
        "romantic": ("Romance", "Comedy", "Drama"),
        "scared": ("Horror", "Thriller", "Mystery"),
        "thoughtful": ("Documentary", "Drama", "Science Fiction"),
        "curious": ("Documentary", "Mystery", "Science Fiction", "Crime"),
        "melancholy": ("Drama", "Romance"),
        "energetic": ("Action", "Adventure", "Music"),
        "mysterious": ("Mystery", "Thriller", "Crime"),
    }
)


@dataclass(frozen=True, slots=True)
class MoodProfile:
    """Discover-query defaults for a mood."""

    genres: tuple[str, ...]
    min_rating: float
    year_to: int | None = None


MOOD_SEARCH_PROFILES = MappingProxyType(
    {
        "happy": MoodProfile(("Comedy", "Animation", "Family"), 6.5),
        "sad": MoodProfile(("Drama", "Romance"), 7.0),
        "excited": MoodProfile(("Action", "Adventure", "Thriller"), 6.5),
        "relaxed": MoodProfile(("Comedy", "Family", "Animation"), 6.0),
        "thoughtful": MoodProfile(("Documentary", "Drama", "Science Fiction"), 7.0),
        "romantic": MoodProfile(("Romance", "Comedy"), 6.0),
        "scared": MoodProfile(("Horror", "Thriller"), 6.0),
        "nostalgic": MoodProfile(("Drama", "Comedy", "Family"), 6.5, year_to=2010),
        "adventurous": MoodProfile(("Adventure", "Action", "Fantasy"), 6.5),
        "curious": MoodProfile(("Documentary", "Mystery", "Science Fiction"), 6.5),
        "cozy": MoodProfile(("Comedy", "Family", "Animation", "Romance"), 6.5),
        "melancholy": MoodProfile(("Drama", "Romance"), 7.0),
        "energetic": MoodProfile(("Action", "Adventure", "Music"), 6.0),
        "mysterious": MoodProfile(("Mystery", "Thriller", "Crime"), 6.5),
    }
)

FALLBACK_MOOD_PROFILE = MoodProfile(("Drama", "Comedy"), 6.5)

GENRE_MAP = MappingProxyType(
    {
        28: "Action",
        12: "Adventure",
        16: "Animation",
        35: "Comedy",
        80: "Crime",
        99: "Documentary",
        18: "Drama",
        10751: "Family",
        14: "Fantasy",
        36: "History",
        27: "Horror",
        10402: "Music",
        9648: "Mystery",
        10749: "Romance",
        878: "Science Fiction",
        10770: "TV Movie",
        53: "Thriller",
        10752: "War",
        37: "Western",
    }
)

GENRE_NAME_TO_ID = MappingProxyType({name.lower(): genre_id for genre_id, name in GENRE_MAP.items()})

POSTER_SIZE = "w500"
BACKDROP_SIZE = "original"
PROFILE_SIZE = "w185"
