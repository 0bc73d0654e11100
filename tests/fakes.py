from __future__ import annotations

from moodflix.services.composer import ComposerReply
from moodflix.services.models import ArtistInfo, MovieDetails, MoviePage, MovieSummary, PersonDetails
from moodflix.services.tmdb import TMDbError, TMDbNotFound


def make_movie(movie_id: int, title: str, year: int | None, genres: list[str], rating: float = 7.5) -> MovieSummary:
    return MovieSummary(
        id=movie_id,
        title=title,
        year=year,
        rating=rating,
        genres=genres,
        overview=f"{title} overview",
        release_date=f"{year}-06-01" if year else None,
    )


class FakeProvider:
    """In-memory stand-in for TMDbClient that records the calls it receives."""

    def __init__(
        self,
        *,
        mood_movies: list[MovieSummary] | None = None,
        people: dict[str, ArtistInfo] | None = None,
        filmographies: dict[int, list[MovieSummary]] | None = None,
        details: dict[int, MovieDetails] | None = None,
        fail: bool = False,
    ) -> None:
        self.mood_movies = mood_movies or []
        self.people = people or {}
        self.filmographies = filmographies or {}
        self.details = details or {}
        self.fail = fail
        self.calls: list[tuple[str, tuple, dict]] = []

    def _record(self, name: str, *args, **kwargs) -> None:
        self.calls.append((name, args, kwargs))
        if self.fail:
            raise TMDbError("TMDb is down")

    def call_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]

    def search_movies(self, **kwargs) -> MoviePage:
        self._record("search_movies", **kwargs)
        return MoviePage(movies=list(self.mood_movies), total_results=len(self.mood_movies))

    def get_movies_by_mood(self, mood: str, **kwargs) -> MoviePage:
        self._record("get_movies_by_mood", mood, **kwargs)
        return MoviePage(movies=list(self.mood_movies), total_results=len(self.mood_movies))

    def get_movie_details(self, movie_id: int) -> MovieDetails:
        self._record("get_movie_details", movie_id)
        if movie_id not in self.details:
            raise TMDbNotFound(f"no movie {movie_id}")
        return self.details[movie_id]

    def get_similar_movies(self, movie_id: int, page: int = 1) -> MoviePage:
        self._record("get_similar_movies", movie_id, page=page)
        return MoviePage(movies=list(self.mood_movies))

    def search_person(self, name: str) -> ArtistInfo | None:
        self._record("search_person", name)
        return self.people.get(name)

    def get_person_details(self, person_id: int) -> PersonDetails:
        self._record("get_person_details", person_id)
        artist = next(person for person in self.people.values() if person.id == person_id)
        return PersonDetails(artist=artist, movies=list(self.filmographies.get(person_id, [])))


class FakeComposer:
    model_name = "fake-model"

    def __init__(self, reply: str = "Here are some great picks!", *, fail: bool = False) -> None:
        self.reply = reply
        self.fail = fail
        self.requests: list[list[dict[str, str]]] = []

    def chat(self, messages, *, temperature=None, max_tokens=None) -> ComposerReply:
        self.requests.append([dict(message) for message in messages])
        if self.fail:
            raise RuntimeError("composer unavailable")
        return ComposerReply(content=self.reply)

    def is_available(self) -> bool:
        return not self.fail

