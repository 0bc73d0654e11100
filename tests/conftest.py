from __future__ import annotations

import pytest

from moodflix.db import build_engine, build_session_factory, init_models
from moodflix.services.models import ArtistInfo, MovieSummary

from fakes import make_movie


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    init_models(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def comedies_90s() -> list[MovieSummary]:
    return [
        make_movie(1, "Groundhog Day", 1993, ["Comedy", "Romance"]),
        make_movie(2, "Home Alone", 1990, ["Comedy", "Family"]),
        make_movie(3, "The Mask", 1994, ["Comedy", "Fantasy"]),
    ]


@pytest.fixture
def tom_hanks() -> ArtistInfo:
    return ArtistInfo(id=31, name="Tom Hanks", profile_url=None, known_for="Acting")


@pytest.fixture
def hanks_filmography() -> list[MovieSummary]:
    return [
        make_movie(13, "Forrest Gump", 1994, ["Drama", "Romance"]),
        make_movie(862, "Toy Story", 1995, ["Animation", "Comedy", "Family"]),
        make_movie(857, "Saving Private Ryan", 1998, ["Drama", "War"]),
        make_movie(497, "The Green Mile", 1999, ["Drama", "Fantasy", "Crime"]),
        make_movie(594, "The Terminal", 2004, ["Comedy", "Drama"]),
        make_movie(568, "Apollo 13", 1995, ["Drama", "History"]),
        make_movie(5255, "The Polar Express", 2004, ["Animation", "Adventure", "Family"]),
    ]
