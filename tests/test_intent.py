import pytest

from moodflix.services import intent as intent_service
from moodflix.services.lexicon import DEFAULT_MOOD, MOOD_PATTERNS
from moodflix.services.models import DecadeWindow


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("I need something hilarious tonight", "happy"),
        ("feeling sad and want to cry", "sad"),
        ("give me an epic adventure", "excited"),
        ("just want to chill", "relaxed"),
        ("something heartwarming please", "cozy"),
        ("take me back to my childhood", "nostalgic"),
        ("date night ideas", "romantic"),
        ("something creepy", "scared"),
        ("a philosophical documentary", "thoughtful"),
        ("a good whodunit", "curious"),
    ],
)
def test_detect_mood_single_keyword(message, expected):
    assert intent_service.detect_mood(message) == expected


def test_detect_mood_defaults_when_nothing_matches():
    assert intent_service.detect_mood("what should I watch tonight?") == DEFAULT_MOOD


def test_detect_mood_uses_word_boundaries():
    # "fund" contains "fun" but is not the word "fun"
    assert intent_service.detect_mood("a movie about a hedge fund") == DEFAULT_MOOD


def test_detect_mood_first_declared_wins():
    order = [mood for mood, _ in MOOD_PATTERNS]
    assert order.index("happy") < order.index("sad")
    assert intent_service.detect_mood("something sad but also funny") == "happy"


def test_mood_explicitly_requested():
    assert intent_service.mood_explicitly_requested("scary stuff", "scared")
    assert intent_service.mood_explicitly_requested("a cozy evening", "cozy")
    assert not intent_service.mood_explicitly_requested("Tom Hanks movies", "cozy")


def test_detect_decade():
    assert intent_service.detect_decade("I want something from the 90s") == DecadeWindow(1990, 1999)
    assert intent_service.detect_decade("Best of the 1980S") == DecadeWindow(1980, 1989)
    assert intent_service.detect_decade("2010s thrillers") == DecadeWindow(2010, 2019)
    assert intent_service.detect_decade("something fun") is None


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("Tom Hanks movies", "Tom Hanks"),
        ("tom hanks movies", "Tom Hanks"),
        ("romance starring brad pitt", "Brad Pitt"),
        ("movies with Meryl Streep, please", "Meryl Streep"),
        ("films by Greta Gerwig", "Greta Gerwig"),
        ("show me Denzel Washington movies", "Denzel Washington"),
        ("what movies has Emma Stone been in", "Emma Stone"),
        ("now Keanu Reeves films", "Keanu Reeves"),
        ("please Julia Roberts", "Julia Roberts"),
        ("Is there anything good with Viola Davis?", "Viola Davis"),
    ],
)
def test_detect_artist(message, expected):
    assert intent_service.detect_artist(message) == expected


@pytest.mark.parametrize(
    "message",
    [
        "show me something funny",
        "I want something happy from the 90s",
        "scary movies",
        "Recommend some comedy",
    ],
)
def test_detect_artist_rejects_non_names(message):
    assert intent_service.detect_artist(message) is None


def test_detect_artist_rejects_long_candidates():
    assert intent_service.detect_artist("movies with lots and lots of big explosions") is None


def test_detect_artist_drops_genre_words_from_name():
    assert intent_service.detect_artist("Comedy Jim Carrey") == "Jim Carrey"


def test_extract_intent_combines_detectors():
    intent = intent_service.extract_intent("funny Tom Hanks movies from the 90s")
    assert intent.mood == "happy"
    assert intent.explicit_mood is True
    assert intent.decade == DecadeWindow(1990, 1999)
    assert intent.artist == "Tom Hanks"


def test_genres_for_mood():
    assert intent_service.genres_for_mood("scared") == ("Horror", "Thriller", "Mystery")
    assert intent_service.genres_for_mood("unknown") == ()
