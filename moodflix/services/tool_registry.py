"""Tool registry for chat orchestration.

Every provider-backed operation is a LangChain `StructuredTool` with a pydantic
argument schema. `ToolSpec.execute` turns both validation problems and
provider failures into ``{"success": False, "error": ...}`` so the orchestrator
only ever inspects the result dict.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from moodflix.services.models import ArtistInfo, MovieDetails, MoviePage, PersonDetails

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 10
SIMILAR_RESULT_LIMIT = 8


class MovieProvider(Protocol):
    def search_movies(self, **kwargs: Any) -> MoviePage: ...

    def get_movies_by_mood(self, mood: str, **kwargs: Any) -> MoviePage: ...

    def get_movie_details(self, movie_id: int) -> MovieDetails: ...

    def get_similar_movies(self, movie_id: int, page: int = 1) -> MoviePage: ...

    def search_person(self, name: str) -> ArtistInfo | None: ...

    def get_person_details(self, person_id: int) -> PersonDetails: ...


class SearchMoviesArgs(BaseModel):
    query: str | None = Field(default=None, description="Search query for movie title or keywords")
    genres: list[str] | None = Field(default=None, description='Genres to filter by, e.g. ["Action", "Comedy"]')
    year_from: int | None = Field(default=None, description="Start year for release date filter")
    year_to: int | None = Field(default=None, description="End year for release date filter")
    min_rating: float | None = Field(default=None, ge=0, le=10, description="Minimum rating (0-10)")
    mood: str | None = Field(
        default=None,
        description=(
            "Mood keyword (happy, sad, excited, relaxed, thoughtful, romantic, scared, nostalgic, "
            "adventurous, curious, cozy, melancholy, energetic, mysterious)"
        ),
    )


class MovieIdArgs(BaseModel):
    movie_id: int = Field(..., description="The TMDb movie id")


class ArtistArgs(BaseModel):
    artist_name: str = Field(..., min_length=1, description="The name of the actor/actress to search for")


@dataclass(frozen=True)
class ToolSpec:
    name: str
    tool: StructuredTool

    @property
    def description(self) -> str:
        return self.tool.description

    @property
    def parameters(self) -> dict[str, Any]:
        return self.tool.args_schema.model_json_schema()

    def execute(self, args: dict[str, Any]) -> dict[str, Any]:
        try:
            payload = self.tool.invoke(args)
        except Exception as exc:
            logger.warning("Tool %s failed: %s", self.name, exc)
            return {"success": False, "error": str(exc)}
        return payload


class ToolRegistry:
    def __init__(self, specs: list[ToolSpec]) -> None:
        self._specs = {spec.name: spec for spec in specs}

    @property
    def specs(self) -> list[ToolSpec]:
        return list(self._specs.values())

    def get(self, name: str) -> ToolSpec | None:
        return self._specs.get(name)

    def execute(self, name: str, args: dict[str, Any]) -> dict[str, Any]:
        spec = self._specs.get(name)
        if spec is None:
            return {"success": False, "error": f"Unknown tool: {name}"}
        return spec.execute(args)


def build_tool_registry(provider: MovieProvider) -> ToolRegistry:
    """Bind the movie tools to one provider instance."""

    def search_movies(
        query: str | None = None,
        genres: list[str] | None = None,
        year_from: int | None = None,
        year_to: int | None = None,
        min_rating: float | None = None,
        mood: str | None = None,
    ) -> dict[str, Any]:
        if mood:
            result = provider.get_movies_by_mood(
                mood,
                year_from=year_from,
                year_to=year_to,
                min_rating=min_rating,
            )
        else:
            result = provider.search_movies(
                query=query,
                genres=genres,
                year_from=year_from,
                year_to=year_to,
                min_rating=min_rating,
            )
        movies = result.movies[:SEARCH_RESULT_LIMIT]
        return {
            "success": True,
            "count": len(movies),
            "total_results": result.total_results,
            "movies": [movie.truncated().to_payload() for movie in movies],
        }

    def get_movie_details(movie_id: int) -> dict[str, Any]:
        details = provider.get_movie_details(movie_id)
        movie = details.summary
        return {
            "success": True,
            "movie": {
                **movie.to_payload(),
                "runtime": details.runtime_label(),
                "tagline": details.tagline,
                "director": details.director,
                "cast": details.cast_as_string(),
            },
        }

    def get_similar_movies(movie_id: int) -> dict[str, Any]:
        movies = provider.get_similar_movies(movie_id).movies[:SIMILAR_RESULT_LIMIT]
        return {
            "success": True,
            "count": len(movies),
            "movies": [movie.truncated().to_payload() for movie in movies],
        }

    def get_movies_by_artist(artist_name: str) -> dict[str, Any]:
        person = provider.search_person(artist_name)
        if person is None:
            return {"success": False, "error": f"Could not find artist: {artist_name}"}
        details = provider.get_person_details(person.id)
        return {
            "success": True,
            "artist": person.to_payload(),
            "count": len(details.movies),
            "movies": [movie.truncated().to_payload() for movie in details.movies],
        }

    return ToolRegistry(
        [
            ToolSpec(
                name="search_movies",
                tool=StructuredTool.from_function(
                    func=search_movies,
                    name="search_movies",
                    description=(
                        "Search for movies based on mood, genre, year range, rating, or keywords."
                    ),
                    args_schema=SearchMoviesArgs,
                ),
            ),
            ToolSpec(
                name="get_movie_details",
                tool=StructuredTool.from_function(
                    func=get_movie_details,
                    name="get_movie_details",
                    description=(
                        "Get cast, director, runtime and tagline for a movie whose TMDb id is known."
                    ),
                    args_schema=MovieIdArgs,
                ),
            ),
            ToolSpec(
                name="get_similar_movies",
                tool=StructuredTool.from_function(
                    func=get_similar_movies,
                    name="get_similar_movies",
                    description="Find movies similar to a given movie.",
                    args_schema=MovieIdArgs,
                ),
            ),
            ToolSpec(
                name="get_movies_by_artist",
                tool=StructuredTool.from_function(
                    func=get_movies_by_artist,
                    name="get_movies_by_artist",
                    description="Search for movies starring a specific actor or actress.",
                    args_schema=ArtistArgs,
                ),
            ),
        ]
    )
