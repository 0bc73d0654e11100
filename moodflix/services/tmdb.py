"""Thin wrapper around the TMDb API to fetch and normalize movie metadata."""

from __future__ import annotations

import logging
import math
import random
from typing import Any, Iterable, Literal, Sequence, TypeVar

import httpx

from moodflix.core.config import Settings, get_settings
from moodflix.services import lexicon
from moodflix.services.cache import MovieDetailCache
from moodflix.services.models import (
    ArtistInfo,
    CastMember,
    MovieDetails,
    MoviePage,
    MovieSummary,
    PersonDetails,
)

logger = logging.getLogger(__name__)

MIN_VOTE_COUNT = 50
MOOD_PAGE_SPAN = 5
PERSON_MIN_VOTES = 50
PERSON_MIN_RATING = 5.5
PERSON_POOL_SIZE = 20
PERSON_PICK_SIZE = 10
CACHED_CAST_LIMIT = 10
DETAIL_CAST_LIMIT = 5
CACHED_CREW_JOBS = frozenset({"Director", "Writer", "Screenplay"})

T = TypeVar("T")


class TMDbError(Exception):
    """Base exception for TMDb-related failures."""


class TMDbNotFound(TMDbError):
    """Raised when TMDb has no record for the requested id."""


def shuffle_movies(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy; the input is left untouched."""

    shuffled = list(items)
    (rng or random).shuffle(shuffled)
    return shuffled


class TMDbClient:
    """TMDb HTTP client using API key auth over one reusable httpx session."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        api_key: str | None = None,
        http_client: httpx.Client | None = None,
        cache: MovieDetailCache | None = None,
        rng: random.Random | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.api_key = api_key or settings.tmdb_api_key
        self.base_url = settings.tmdb_base_url.rstrip("/")
        self.language = settings.tmdb_language
        self.image_base = settings.tmdb_image_base.rstrip("/")
        self.cache = cache
        self._rng = rng or random.Random()
        self._http = http_client or httpx.Client(base_url=self.base_url, timeout=settings.tmdb_timeout)

    def close(self) -> None:
        self._http.close()

    def _request(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        if not self.api_key:
            raise TMDbError("TMDB_API_KEY is not configured")
        query: dict[str, Any] = {"api_key": self.api_key}
        if self.language:
            query["language"] = self.language
        if params:
            query.update({k: v for k, v in params.items() if v is not None})
        try:
            response = self._http.get(path, params=query)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise TMDbNotFound(f"TMDb has no resource at {path}") from exc
            raise TMDbError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise TMDbError(f"TMDb request to {path} failed: {exc}") from exc
        return response.json()

    # -- search -----------------------------------------------------------

    def search_movies(
        self,
        *,
        query: str | None = None,
        genres: Iterable[str | int] | None = None,
        year_from: int | None = None,
        year_to: int | None = None,
        min_rating: float | None = None,
        sort_by: str = "popularity.desc",
        page: int = 1,
    ) -> MoviePage:
        """Text search when `query` is given, filter-based discovery otherwise."""

        path = "/discover/movie"
        params: dict[str, Any] = {
            "page": page,
            "sort_by": sort_by,
            "vote_count.gte": MIN_VOTE_COUNT,
            "include_adult": "false",
        }
        if query:
            path = "/search/movie"
            params["query"] = query

        genre_ids = resolve_genre_ids(genres or ())
        if genre_ids:
            params["with_genres"] = ",".join(str(genre_id) for genre_id in genre_ids)
        if year_from:
            params["primary_release_date.gte"] = f"{year_from}-01-01"
        if year_to:
            params["primary_release_date.lte"] = f"{year_to}-12-31"
        if min_rating:
            params["vote_average.gte"] = min_rating

        payload = self._request(path, params=params)
        logger.debug("TMDb %s payload: %s", path, payload)
        return self._to_page(payload)

    def get_movies_by_mood(
        self,
        mood: str,
        *,
        year_from: int | None = None,
        year_to: int | None = None,
        min_rating: float | None = None,
    ) -> MoviePage:
        """Discover a random page (1-5) for the mood's profile, then shuffle it."""

        profile = lexicon.MOOD_SEARCH_PROFILES.get(mood.lower(), lexicon.FALLBACK_MOOD_PROFILE)
        page_number = self._rng.randint(1, MOOD_PAGE_SPAN)
        result = self.search_movies(
            genres=profile.genres,
            year_from=year_from,
            year_to=year_to if year_to is not None else profile.year_to,
            min_rating=min_rating if min_rating is not None else profile.min_rating,
            sort_by="popularity.desc",
            page=page_number,
        )
        result.movies = shuffle_movies(result.movies, self._rng)
        return result

    def get_similar_movies(self, movie_id: int, page: int = 1) -> MoviePage:
        payload = self._request(f"/movie/{movie_id}/similar", params={"page": page})
        return self._to_page(payload)

    def get_trending(self, time_window: Literal["day", "week"] = "week") -> MoviePage:
        if time_window not in ("day", "week"):
            raise ValueError(f"time_window must be 'day' or 'week', got {time_window!r}")
        payload = self._request(f"/trending/movie/{time_window}")
        return self._to_page(payload)

    # -- people -----------------------------------------------------------

    def search_person(self, name: str) -> ArtistInfo | None:
        payload = self._request("/search/person", params={"query": name})
        results = payload.get("results") or []
        if not results:
            return None
        return self.format_artist(results[0])

    def get_person_details(self, person_id: int) -> PersonDetails:
        """Person with a varied pick of their better-known films.

        Credits with enough votes and a decent rating are ranked by
        popularity; the top 20 are shuffled and 10 of them kept.
        """

        person = self._request(f"/person/{person_id}", params={"append_to_response": "movie_credits"})
        credits = (person.get("movie_credits") or {}).get("cast") or []
        quality = [
            movie
            for movie in credits
            if (movie.get("vote_count") or 0) > PERSON_MIN_VOTES
            and (movie.get("vote_average") or 0) >= PERSON_MIN_RATING
        ]
        quality.sort(key=lambda movie: movie.get("popularity") or 0, reverse=True)
        picks = shuffle_movies(quality[:PERSON_POOL_SIZE], self._rng)[:PERSON_PICK_SIZE]
        return PersonDetails(
            artist=self.format_artist(person),
            biography=person.get("biography"),
            birthday=person.get("birthday"),
            movies=[self.format_movie(movie) for movie in picks],
        )

    # -- details ----------------------------------------------------------

    def get_movie_details(self, movie_id: int) -> MovieDetails:
        if self.cache is not None:
            cached = self.cache.get(movie_id)
            if cached and cached.get("credits"):
                logger.debug("Movie %s served from detail cache", movie_id)
                return self.format_movie_details(cached)

        details = self._request(
            f"/movie/{movie_id}",
            params={"append_to_response": "credits,similar,keywords"},
        )
        if self.cache is not None:
            self.cache.put(movie_id, _cacheable_details(details))
        return self.format_movie_details(details)

    # -- formatting -------------------------------------------------------

    def format_movie(self, movie: dict[str, Any]) -> MovieSummary:
        release_date = movie.get("release_date") or None
        if movie.get("genre_ids") is not None:
            genres = [lexicon.GENRE_MAP[g] for g in movie["genre_ids"] if g in lexicon.GENRE_MAP]
        else:
            genres = [g["name"] for g in movie.get("genres") or [] if g.get("name")]
        rating = movie.get("vote_average")
        return MovieSummary(
            id=movie.get("id") or movie.get("tmdb_id"),
            title=movie.get("title") or "",
            year=_parse_year(release_date),
            rating=round_rating(rating) if rating else None,
            genres=genres,
            overview=movie.get("overview"),
            poster_url=self._image_url(movie.get("poster_path"), lexicon.POSTER_SIZE),
            backdrop_url=self._image_url(movie.get("backdrop_path"), lexicon.BACKDROP_SIZE),
            release_date=release_date,
        )

    def format_movie_details(self, movie: dict[str, Any]) -> MovieDetails:
        credits = movie.get("credits") or {}
        cast = [
            CastMember(
                name=member.get("name") or "",
                character=member.get("character"),
                profile_url=self._image_url(member.get("profile_path"), lexicon.PROFILE_SIZE),
            )
            for member in (credits.get("cast") or [])[:DETAIL_CAST_LIMIT]
        ]
        director = next(
            (member.get("name") for member in credits.get("crew") or [] if member.get("job") == "Director"),
            None,
        )
        summary = self.format_movie(movie)
        if movie.get("genres"):
            summary.genres = [g["name"] for g in movie["genres"] if g.get("name")]
        return MovieDetails(
            summary=summary,
            runtime=movie.get("runtime"),
            tagline=movie.get("tagline"),
            director=director,
            cast=cast,
        )

    def format_artist(self, person: dict[str, Any]) -> ArtistInfo:
        return ArtistInfo(
            id=person["id"],
            name=person.get("name") or "",
            profile_url=self._image_url(person.get("profile_path"), lexicon.PROFILE_SIZE),
            known_for=person.get("known_for_department"),
        )

    def _image_url(self, path: str | None, size: str) -> str | None:
        if not path:
            return None
        return f"{self.image_base}/{size}{path}"

    def _to_page(self, payload: dict[str, Any]) -> MoviePage:
        return MoviePage(
            movies=[self.format_movie(movie) for movie in payload.get("results") or []],
            page=payload.get("page") or 1,
            total_pages=payload.get("total_pages") or 0,
            total_results=payload.get("total_results") or 0,
        )


def round_rating(value: float) -> float:
    """One decimal, halves rounded up (6.25 -> 6.3) rather than to even."""

    return math.floor(value * 10 + 0.5) / 10


def resolve_genre_ids(genres: Iterable[str | int]) -> list[int]:
    """Map genre names (case-insensitive) or ids to TMDb ids, dropping unknowns."""

    ids: list[int] = []
    for genre in genres:
        if isinstance(genre, int):
            ids.append(genre)
            continue
        genre_id = lexicon.GENRE_NAME_TO_ID.get(genre.lower())
        if genre_id is not None:
            ids.append(genre_id)
    return ids


def _parse_year(release_date: str | None) -> int | None:
    if not release_date or len(release_date) < 4:
        return None
    try:
        return int(release_date[:4])
    except ValueError:
        return None


def _cacheable_details(details: dict[str, Any]) -> dict[str, Any]:
    credits = details.get("credits") or {}
    return {
        "id": details.get("id"),
        "title": details.get("title"),
        "original_title": details.get("original_title"),
        "overview": details.get("overview"),
        "poster_path": details.get("poster_path"),
        "backdrop_path": details.get("backdrop_path"),
        "release_date": details.get("release_date"),
        "vote_average": details.get("vote_average"),
        "vote_count": details.get("vote_count"),
        "popularity": details.get("popularity"),
        "genres": details.get("genres") or [],
        "runtime": details.get("runtime"),
        "tagline": details.get("tagline"),
        "credits": {
            "cast": (credits.get("cast") or [])[:CACHED_CAST_LIMIT],
            "crew": [member for member in credits.get("crew") or [] if member.get("job") in CACHED_CREW_JOBS],
        },
    }
