"""Database session management and repositories."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from sqlalchemy import Engine, create_engine, delete, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from moodflix.models import Base, ConversationRecord, MessageRecord, MovieCacheRecord
from moodflix.services.models import Conversation, Message, MovieSummary, utcnow

logger = logging.getLogger(__name__)


class ConversationNotFound(LookupError):
    """Raised when a write targets a conversation id that is not stored."""


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite connections are shared across threads."""

    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") in {"sqlite:", "sqlite+pysqlite:"}:
            kwargs["poolclass"] = StaticPool
        return create_engine(url, future=True, **kwargs)
    return create_engine(url, future=True, pool_pre_ping=True)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_models(engine: Engine) -> None:
    """Create tables if they do not exist (handy for local dev)."""
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """Unit of work that commits on success and rolls back on error."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_conversation_id(raw: uuid.UUID | str | None) -> uuid.UUID | None:
    if raw is None or isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        return None


class ConversationRepository:
    """Persistence for append-only conversations.

    Reads and writes go through the `Conversation`/`Message` dataclasses so
    callers never touch ORM rows. `save` overwrites the stored message list with
    the in-memory one, so of two concurrent turns on one id the last save wins.
    """

    def create(self, session: Session) -> Conversation:
        now = utcnow()
        record = ConversationRecord(id=uuid.uuid4(), created_at=now, updated_at=now)
        session.add(record)
        session.flush()
        return Conversation(id=record.id, messages=[], created_at=now, updated_at=now)

    def get(self, session: Session, conversation_id: uuid.UUID | str | None) -> Conversation | None:
        parsed = parse_conversation_id(conversation_id)
        if parsed is None:
            return None
        record = session.get(ConversationRecord, parsed)
        if record is None:
            return None
        rows = session.execute(
            select(MessageRecord)
            .where(MessageRecord.conversation_id == parsed)
            .order_by(MessageRecord.position)
        ).scalars()
        return Conversation(
            id=record.id,
            messages=[_row_to_message(row) for row in rows],
            created_at=as_utc(record.created_at),
            updated_at=as_utc(record.updated_at),
        )

    def append_message(
        self,
        session: Session,
        conversation_id: uuid.UUID | str,
        message: Message,
    ) -> int:
        """Insert one message after the last stored one; returns its position."""

        parsed = parse_conversation_id(conversation_id)
        record = session.get(ConversationRecord, parsed) if parsed else None
        if record is None:
            raise ConversationNotFound(str(conversation_id))
        position = session.execute(
            select(func.count()).select_from(MessageRecord).where(MessageRecord.conversation_id == parsed)
        ).scalar_one()
        session.add(_message_to_row(record.id, position, message))
        record.updated_at = message.timestamp
        session.flush()
        return position

    def save(self, session: Session, conversation: Conversation) -> None:
        record = session.get(ConversationRecord, conversation.id)
        if record is None:
            record = ConversationRecord(
                id=conversation.id,
                created_at=conversation.created_at,
                updated_at=conversation.updated_at,
            )
            session.add(record)
        else:
            record.updated_at = conversation.updated_at
            session.execute(delete(MessageRecord).where(MessageRecord.conversation_id == conversation.id))
        session.flush()
        session.add_all(
            _message_to_row(conversation.id, position, message)
            for position, message in enumerate(conversation.messages)
        )
        session.flush()

    def delete(self, session: Session, conversation_id: uuid.UUID | str) -> bool:
        parsed = parse_conversation_id(conversation_id)
        if parsed is None:
            return False
        session.execute(delete(MessageRecord).where(MessageRecord.conversation_id == parsed))
        result = session.execute(delete(ConversationRecord).where(ConversationRecord.id == parsed))
        return result.rowcount > 0


class MovieCacheRepository:
    """Rows of cached TMDb detail payloads, one per TMDb id."""

    def get(self, session: Session, tmdb_id: int) -> MovieCacheRecord | None:
        query = select(MovieCacheRecord).where(MovieCacheRecord.tmdb_id == tmdb_id)
        return session.execute(query).scalar_one_or_none()

    def upsert(
        self,
        session: Session,
        *,
        tmdb_id: int,
        payload: dict[str, Any],
        cached_at: datetime,
    ) -> MovieCacheRecord:
        record = self.get(session, tmdb_id)
        if record is None:
            record = MovieCacheRecord(tmdb_id=tmdb_id, payload=payload, cached_at=cached_at)
            session.add(record)
        else:
            record.payload = payload
            record.cached_at = cached_at
        session.flush()
        return record

    def purge_older_than(self, session: Session, cutoff: datetime) -> int:
        result = session.execute(delete(MovieCacheRecord).where(MovieCacheRecord.cached_at < cutoff))
        return result.rowcount or 0


def _row_to_message(row: MessageRecord) -> Message:
    return Message(
        role=row.role,  # type: ignore[arg-type]
        content=row.content,
        movies=tuple(MovieSummary.from_payload(item) for item in row.movies or []),
        timestamp=as_utc(row.created_at),
    )


def _message_to_row(conversation_id: uuid.UUID, position: int, message: Message) -> MessageRecord:
    return MessageRecord(
        conversation_id=conversation_id,
        position=position,
        role=message.role,
        content=message.content,
        movies=[movie.to_payload() for movie in message.movies],
        created_at=message.timestamp,
    )
