"""Movie agent: intent extraction, tool calls, post-filtering and reply composition."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Sequence

from sqlalchemy.orm import Session, sessionmaker

from moodflix.db import ConversationRepository, session_scope
from moodflix.services.composer import ComposerError, LanguageComposer
from moodflix.services.intent import detect_decade, detect_mood, extract_intent, genres_for_mood
from moodflix.services.models import (
    ArtistInfo,
    ChatTurnResult,
    Conversation,
    DecadeWindow,
    Intent,
    Message,
    MovieSummary,
    utcnow,
)
from moodflix.services.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "I'm having trouble finding movies right now. Please try again!"
NO_RESULTS_MESSAGE = (
    "I couldn't find movies matching your request. Try mentioning a mood (funny, scary, romantic), "
    "a decade (80s, 90s), or an actor's name!"
)
MOOD_SYSTEM_PROMPT = (
    "You are MoodFlix, a friendly movie recommender. Create a brief, warm response recommending "
    "the movies below. For each movie, write 1 sentence about why it fits the mood. "
    "Keep it conversational and under 200 words total."
)

MAX_RECOMMENDATIONS = 5
# A post-filter is only kept if it leaves at least this many movies.
MIN_FILTERED_RESULTS = 2


class ValidationError(ValueError):
    """Raised for chat input that cannot be processed (e.g. empty text)."""


class ProviderError(Exception):
    """A provider-backed tool reported failure."""


def artist_system_prompt(genre_filter: str | None) -> str:
    genre_clause = f" in the {genre_filter} genre" if genre_filter else ""
    return (
        "You are MoodFlix, a friendly movie recommender. Create a brief, warm response about the "
        f"actor/actress and their movies{genre_clause}. Mention 2-3 movies with a short note about "
        "each. Keep it under 150 words."
    )


def format_movie_list(movies: Sequence[MovieSummary]) -> str:
    lines = []
    for index, movie in enumerate(movies, start=1):
        year = movie.year if movie.year is not None else "N/A"
        rating = movie.rating if movie.rating is not None else "N/A"
        lines.append(f'{index}. "{movie.title}" ({year}) - Rating: {rating}/10 - {", ".join(movie.genres)}')
    return "\n".join(lines)


def filter_by_genres(movies: list[MovieSummary], genres: Sequence[str]) -> list[MovieSummary] | None:
    """Movies sharing a genre with `genres`, or None if too few remain."""

    filtered = [movie for movie in movies if any(genre in genres for genre in movie.genres)]
    return filtered if len(filtered) >= MIN_FILTERED_RESULTS else None


def filter_by_decade(movies: list[MovieSummary], decade: DecadeWindow) -> list[MovieSummary] | None:
    filtered = [movie for movie in movies if decade.contains(movie.year)]
    return filtered if len(filtered) >= MIN_FILTERED_RESULTS else None


@dataclass(slots=True)
class _Reply:
    message: str
    movies: list[MovieSummary] = field(default_factory=list)
    artist: ArtistInfo | None = None


class MovieAgent:
    """Answers one chat turn at a time; state lives only in the conversation store."""

    def __init__(
        self,
        tools: ToolRegistry,
        session_factory: sessionmaker[Session],
        *,
        composer: LanguageComposer | None = None,
        conversations: ConversationRepository | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.tools = tools
        self.composer = composer
        self._session_factory = session_factory
        self._conversations = conversations or ConversationRepository()
        self._clock = clock

    # -- chat turn --------------------------------------------------------

    def chat(self, message: str, conversation_id: uuid.UUID | str | None = None) -> ChatTurnResult:
        """Answer `message`, appending both turns to the conversation.

        Provider and composer failures never escape: they become an apology
        reply that is persisted like any other assistant turn.
        """

        if not message or not message.strip():
            raise ValidationError("message must not be empty")

        conversation = None
        if conversation_id:
            with session_scope(self._session_factory) as session:
                conversation = self._conversations.get(session, conversation_id)
        if conversation is None:
            conversation = Conversation()

        conversation.append(Message(role="user", content=message, timestamp=self._clock()))

        try:
            reply = self._respond(message)
        except Exception:
            logger.exception("Agent failed to answer message %r", message)
            reply = _Reply(message=APOLOGY_MESSAGE)

        conversation.append(
            Message(
                role="assistant",
                content=reply.message,
                movies=tuple(reply.movies),
                timestamp=self._clock(),
            )
        )
        with session_scope(self._session_factory) as session:
            self._conversations.save(session, conversation)

        return ChatTurnResult(
            conversation_id=conversation.id,
            message=reply.message,
            movies=reply.movies,
            artist=reply.artist,
        )

    def _respond(self, message: str) -> _Reply:
        intent = extract_intent(message)
        logger.info(
            "Detected artist=%s mood=%s explicit_mood=%s decade=%s",
            intent.artist,
            intent.mood,
            intent.explicit_mood,
            intent.decade,
        )
        if intent.artist:
            reply = self._artist_reply(message, intent)
            if reply is not None:
                return reply
            logger.info("Artist %r not found, falling back to mood search", intent.artist)
        return self._mood_reply(message)

    def _artist_reply(self, message: str, intent: Intent) -> _Reply | None:
        result = self.tools.execute("get_movies_by_artist", {"artist_name": intent.artist})
        if not result.get("success") or not result.get("movies"):
            return None

        artist = ArtistInfo.from_payload(result["artist"])
        movies = [MovieSummary.from_payload(item) for item in result["movies"]]

        genre_filter = None
        if intent.explicit_mood:
            mood_genres = genres_for_mood(intent.mood)
            if mood_genres:
                filtered = filter_by_genres(movies, mood_genres)
                if filtered is not None:
                    movies = filtered
                    genre_filter = intent.mood
                    logger.info("Filtered %s's movies by %s genres: %s left", artist.name, intent.mood, len(movies))
                else:
                    logger.info("Not enough %s movies for %s, keeping all", intent.mood, artist.name)

        if intent.decade:
            filtered = filter_by_decade(movies, intent.decade)
            if filtered is not None:
                movies = filtered
                logger.info("Filtered by decade %s: %s left", intent.decade.label, len(movies))

        movies = movies[:MAX_RECOMMENDATIONS]
        movie_list = format_movie_list(movies)

        context = [f"Artist: {artist.name}"]
        if genre_filter:
            context.append(f"Genre filter: {genre_filter} movies")
        if intent.decade:
            context.append(f"Decade: {intent.decade.label}")
        search_context = "\n".join(context)

        text = self._compose(
            artist_system_prompt(genre_filter),
            f'User asked about: "{message}"\n\n{search_context}\nTheir movies:\n{movie_list}',
            offline=f"Here are some movies with {artist.name}:\n{movie_list}",
        )
        return _Reply(message=text, movies=movies, artist=artist)

    def _mood_reply(self, message: str) -> _Reply:
        mood = detect_mood(message)
        decade = detect_decade(message)
        logger.info("Mood search: mood=%s decade=%s", mood, decade)

        args: dict[str, Any] = {"mood": mood}
        if decade:
            args["year_from"] = decade.year_from
            args["year_to"] = decade.year_to

        result = self.tools.execute("search_movies", args)
        if not result.get("success"):
            raise ProviderError(result.get("error") or "search_movies failed")

        movies = [MovieSummary.from_payload(item) for item in result.get("movies") or []][:MAX_RECOMMENDATIONS]
        if not movies:
            return _Reply(message=NO_RESULTS_MESSAGE)

        movie_list = format_movie_list(movies)
        text = self._compose(
            MOOD_SYSTEM_PROMPT,
            f'User said: "{message}"\n\nRecommend these movies:\n{movie_list}',
            offline=f"Here are some {mood} picks for you:\n{movie_list}",
        )
        return _Reply(message=text, movies=movies)

    def _compose(self, system_prompt: str, user_prompt: str, *, offline: str) -> str:
        # Without an OpenAI key the enumerated list is the reply.
        if self.composer is None:
            return offline
        reply = self.composer.chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ]
        )
        if not reply.content:
            raise ComposerError("chat model returned an empty reply")
        return reply.content

    # -- conversation management -----------------------------------------

    def get_conversation(self, conversation_id: uuid.UUID | str) -> Conversation | None:
        with session_scope(self._session_factory) as session:
            return self._conversations.get(session, conversation_id)

    def create_conversation(self) -> Conversation:
        with session_scope(self._session_factory) as session:
            return self._conversations.create(session)

    def delete_conversation(self, conversation_id: uuid.UUID | str) -> bool:
        with session_scope(self._session_factory) as session:
            return self._conversations.delete(session, conversation_id)

    def llm_status(self) -> dict[str, Any]:
        if self.composer is None:
            return {"llm_available": False, "current_model": None, "provider": "openai"}
        return {
            "llm_available": self.composer.is_available(),
            "current_model": self.composer.model_name,
            "provider": "openai",
        }
