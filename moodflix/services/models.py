"""Shared dataclasses for the service layer."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Literal

OVERVIEW_PREVIEW_LENGTH = 200

Role = Literal["user", "assistant"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class DecadeWindow:
    """Inclusive release-year range."""

    year_from: int
    year_to: int

    def contains(self, year: int | None) -> bool:
        return year is not None and self.year_from <= year <= self.year_to

    @property
    def label(self) -> str:
        return f"{self.year_from}s"


@dataclass(frozen=True, slots=True)
class Intent:
    mood: str
    decade: DecadeWindow | None = None
    artist: str | None = None
    explicit_mood: bool = False


@dataclass(slots=True)
class MovieSummary:
    """Normalized TMDb movie record."""

    id: int
    title: str
    year: int | None = None
    rating: float | None = None
    genres: list[str] = field(default_factory=list)
    overview: str | None = None
    poster_url: str | None = None
    backdrop_url: str | None = None
    release_date: str | None = None

    def truncated(self, limit: int = OVERVIEW_PREVIEW_LENGTH) -> MovieSummary:
        """Copy with the overview cut to `limit` characters plus an ellipsis."""

        if not self.overview or len(self.overview) <= limit:
            return replace(self, genres=list(self.genres))
        return replace(self, genres=list(self.genres), overview=self.overview[:limit] + "...")

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "year": self.year,
            "rating": self.rating,
            "genres": list(self.genres),
            "overview": self.overview,
            "poster_url": self.poster_url,
            "backdrop_url": self.backdrop_url,
            "release_date": self.release_date,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> MovieSummary:
        return cls(
            id=int(payload["id"]),
            title=payload.get("title") or "",
            year=payload.get("year"),
            rating=payload.get("rating"),
            genres=list(payload.get("genres") or []),
            overview=payload.get("overview"),
            poster_url=payload.get("poster_url"),
            backdrop_url=payload.get("backdrop_url"),
            release_date=payload.get("release_date"),
        )


@dataclass(slots=True)
class CastMember:
    name: str
    character: str | None = None
    profile_url: str | None = None


@dataclass(slots=True)
class MovieDetails:
    """Movie summary enriched with credits for the detail view."""

    summary: MovieSummary
    runtime: int | None = None
    tagline: str | None = None
    director: str | None = None
    cast: list[CastMember] = field(default_factory=list)

    def cast_as_string(self) -> str | None:
        if not self.cast:
            return None
        return ", ".join(
            f"{member.name} as {member.character}" if member.character else member.name
            for member in self.cast
        )

    def runtime_label(self) -> str | None:
        return f"{self.runtime} minutes" if self.runtime else None


@dataclass(slots=True)
class ArtistInfo:
    id: int
    name: str
    profile_url: str | None = None
    known_for: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "profile_url": self.profile_url,
            "known_for": self.known_for,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ArtistInfo:
        return cls(
            id=int(payload["id"]),
            name=payload.get("name") or "",
            profile_url=payload.get("profile_url"),
            known_for=payload.get("known_for"),
        )


@dataclass(slots=True)
class PersonDetails:
    artist: ArtistInfo
    biography: str | None = None
    birthday: str | None = None
    movies: list[MovieSummary] = field(default_factory=list)


@dataclass(slots=True)
class MoviePage:
    movies: list[MovieSummary]
    page: int = 1
    total_pages: int = 0
    total_results: int = 0


@dataclass(frozen=True, slots=True)
class Message:
    """A single chat turn. Write-once: never edited after it is appended."""

    role: Role
    content: str
    movies: tuple[MovieSummary, ...] = ()
    timestamp: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if self.role not in ("user", "assistant"):
            raise ValueError(f"unsupported message role: {self.role!r}")
        if not self.content:
            raise ValueError("message content must not be empty")
        if self.movies and self.role != "assistant":
            raise ValueError("only assistant messages may carry movies")


@dataclass(slots=True)
class Conversation:
    """Append-only message log addressed by id."""

    id: uuid.UUID = field(default_factory=uuid.uuid4)
    messages: list[Message] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def append(self, message: Message) -> None:
        self.messages.append(message)
        self.updated_at = message.timestamp


@dataclass(slots=True)
class ChatTurnResult:
    conversation_id: uuid.UUID
    message: str
    movies: list[MovieSummary] = field(default_factory=list)
    artist: ArtistInfo | None = None
