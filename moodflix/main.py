"""FastAPI entrypoint wiring the movie agent, TMDb client and conversation store."""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from moodflix.core.config import get_settings
from moodflix.core.langchain_config import configure_langchain_env
from moodflix.db import build_engine, build_session_factory, init_models
from moodflix.services.agent import MovieAgent, ValidationError
from moodflix.services.cache import MovieDetailCache
from moodflix.services.composer import LanguageComposer
from moodflix.services.intent import extract_intent
from moodflix.services.models import ArtistInfo, Conversation, MovieSummary
from moodflix.services.tmdb import TMDbClient, TMDbError, TMDbNotFound
from moodflix.services.tool_registry import build_tool_registry

logger = logging.getLogger(__name__)

SIMILAR_PREVIEW_LIMIT = 10
UNPROCESSABLE_STATUS = 422


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build long-lived clients once and share them through app.state."""

    settings = get_settings()
    configure_langchain_env(settings)
    engine = build_engine(settings.database_url)
    init_models(engine)
    session_factory = build_session_factory(engine)

    cache = MovieDetailCache(session_factory, ttl=timedelta(hours=settings.movie_cache_ttl_hours))
    cache.purge_expired()
    tmdb = TMDbClient(settings=settings, cache=cache)

    composer = None
    if settings.openai_api_key:
        composer = LanguageComposer.from_settings(settings)
    else:
        logger.warning("OPENAI_API_KEY not configured; replies fall back to plain movie lists")

    app.state.tmdb = tmdb
    app.state.agent = MovieAgent(build_tool_registry(tmdb), session_factory, composer=composer)
    try:
        yield
    finally:
        tmdb.close()
        engine.dispose()


app = FastAPI(title="MoodFlix", lifespan=lifespan)


def get_agent(request: Request) -> MovieAgent:
    return request.app.state.agent


def get_tmdb(request: Request) -> TMDbClient:
    return request.app.state.tmdb


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="Free-text chat message (mood, decade or actor)")
    conversation_id: str | None = Field(default=None, alias="conversationId")


class MovieResponse(BaseModel):
    id: int
    title: str
    year: int | None = None
    rating: float | None = None
    genres: list[str] = Field(default_factory=list)
    overview: str | None = None
    poster_url: str | None = None
    backdrop_url: str | None = None
    release_date: str | None = None


class ArtistResponse(BaseModel):
    id: int
    name: str
    profile_url: str | None = None
    known_for: str | None = None


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(..., alias="conversationId")
    message: str
    movies: list[MovieResponse]
    artist: ArtistResponse | None = None


class MessageResponse(BaseModel):
    role: str
    content: str
    movies: list[MovieResponse]
    timestamp: datetime


class ConversationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    messages: list[MessageResponse]
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class StatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    llm_available: bool = Field(..., alias="llmAvailable")
    current_model: str | None = Field(default=None, alias="currentModel")
    provider: str


class CastResponse(BaseModel):
    name: str
    character: str | None = None
    profile_url: str | None = None


class MovieDetailResponse(MovieResponse):
    runtime: int | None = None
    tagline: str | None = None
    director: str | None = None
    cast: list[CastResponse] = Field(default_factory=list)


class MovieDetailEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    movie: MovieDetailResponse
    similar_movies: list[MovieResponse] = Field(..., alias="similarMovies")


class MovieListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    movies: list[MovieResponse]
    total_pages: int | None = Field(default=None, alias="totalPages")
    total_results: int | None = Field(default=None, alias="totalResults")


def _sse_event(event: str, payload: dict | None = None) -> str:
    data = json.dumps(payload or {}, ensure_ascii=False)
    return f"event: {event}\ndata: {data}\n\n"


def _normalized_message(payload: ChatRequest) -> str:
    if not payload.message or not payload.message.strip():
        raise HTTPException(
            status_code=UNPROCESSABLE_STATUS,
            detail="message must not be empty",
        )
    return payload.message


@app.post("/api/chat", response_model=ChatResponse)
def send_message(payload: ChatRequest, agent: MovieAgent = Depends(get_agent)) -> ChatResponse:
    message = _normalized_message(payload)
    try:
        result = agent.chat(message, payload.conversation_id)
    except ValidationError as exc:
        raise HTTPException(status_code=UNPROCESSABLE_STATUS, detail=str(exc)) from exc
    return ChatResponse(
        conversation_id=str(result.conversation_id),
        message=result.message,
        movies=[_movie_to_response(movie) for movie in result.movies],
        artist=_artist_to_response(result.artist),
    )


@app.post("/api/chat/stream")
async def stream_chat(payload: ChatRequest, agent: MovieAgent = Depends(get_agent)) -> StreamingResponse:
    message = _normalized_message(payload)

    async def event_stream():
        yield _sse_event("start", {"message": "Looking for movies..."})
        try:
            intent = extract_intent(message)
            yield _sse_event(
                "analysis",
                {
                    "mood": intent.mood,
                    "artist": intent.artist,
                    "decade": intent.decade.label if intent.decade else None,
                },
            )
            result = await run_in_threadpool(agent.chat, message, payload.conversation_id)
            yield _sse_event(
                "movies",
                {
                    "movies": [movie.to_payload() for movie in result.movies],
                    "artist": result.artist.to_payload() if result.artist else None,
                },
            )
            yield _sse_event(
                "assistant_message",
                {"conversationId": str(result.conversation_id), "message": result.message},
            )
        except Exception as exc:  # pragma: no cover
            logger.exception("Chat stream failed")
            yield _sse_event("error", {"message": f"Unexpected error: {exc}"})
        finally:
            yield _sse_event("end")

    return StreamingResponse(event_stream(), media_type="text/event-stream")


@app.get("/api/chat/status", response_model=StatusResponse)
def get_status(agent: MovieAgent = Depends(get_agent)) -> StatusResponse:
    return StatusResponse(**agent.llm_status())


@app.post("/api/chat/new", response_model=ConversationResponse)
def create_conversation(agent: MovieAgent = Depends(get_agent)) -> ConversationResponse:
    return _conversation_to_response(agent.create_conversation())


@app.get("/api/chat/{conversation_id}", response_model=ConversationResponse)
def get_conversation(conversation_id: str, agent: MovieAgent = Depends(get_agent)) -> ConversationResponse:
    conversation = agent.get_conversation(conversation_id)
    if conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return _conversation_to_response(conversation)


@app.delete("/api/chat/{conversation_id}")
def delete_conversation(conversation_id: str, agent: MovieAgent = Depends(get_agent)) -> dict[str, bool]:
    agent.delete_conversation(conversation_id)
    return {"success": True}


@app.get("/api/movies/trending/{time_window}", response_model=MovieListResponse)
def get_trending(
    time_window: Literal["day", "week"],
    tmdb: TMDbClient = Depends(get_tmdb),
) -> MovieListResponse:
    try:
        page = tmdb.get_trending(time_window)
    except TMDbError as exc:
        raise _tmdb_http_error(exc) from exc
    return MovieListResponse(movies=[_movie_to_response(movie) for movie in page.movies])


@app.get("/api/movies/{movie_id}", response_model=MovieDetailEnvelope)
def get_movie(movie_id: int, tmdb: TMDbClient = Depends(get_tmdb)) -> MovieDetailEnvelope:
    try:
        details = tmdb.get_movie_details(movie_id)
        similar = tmdb.get_similar_movies(movie_id)
    except TMDbError as exc:
        raise _tmdb_http_error(exc) from exc
    movie = MovieDetailResponse(
        **details.summary.to_payload(),
        runtime=details.runtime,
        tagline=details.tagline,
        director=details.director,
        cast=[
            CastResponse(name=member.name, character=member.character, profile_url=member.profile_url)
            for member in details.cast
        ],
    )
    return MovieDetailEnvelope(
        movie=movie,
        similar_movies=[_movie_to_response(item) for item in similar.movies[:SIMILAR_PREVIEW_LIMIT]],
    )


@app.get("/api/movies/{movie_id}/similar", response_model=MovieListResponse)
def get_similar(
    movie_id: int,
    page: int = Query(default=1, ge=1),
    tmdb: TMDbClient = Depends(get_tmdb),
) -> MovieListResponse:
    try:
        result = tmdb.get_similar_movies(movie_id, page)
    except TMDbError as exc:
        raise _tmdb_http_error(exc) from exc
    return MovieListResponse(
        movies=[_movie_to_response(movie) for movie in result.movies],
        total_pages=result.total_pages,
        total_results=result.total_results,
    )


def _tmdb_http_error(exc: TMDbError) -> HTTPException:
    if isinstance(exc, TMDbNotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Movie not found")
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Failed to load movie information",
    )


def _movie_to_response(movie: MovieSummary) -> MovieResponse:
    return MovieResponse(**movie.to_payload())


def _artist_to_response(artist: ArtistInfo | None) -> ArtistResponse | None:
    if artist is None:
        return None
    return ArtistResponse(**artist.to_payload())


def _conversation_to_response(conversation: Conversation) -> ConversationResponse:
    return ConversationResponse(
        id=str(conversation.id),
        messages=[
            MessageResponse(
                role=message.role,
                content=message.content,
                movies=[_movie_to_response(movie) for movie in message.movies],
                timestamp=message.timestamp,
            )
            for message in conversation.messages
        ],
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )
