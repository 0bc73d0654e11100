"""Time-expiring cache of TMDb movie detail payloads."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable

from sqlalchemy.orm import Session, sessionmaker

from moodflix.db import MovieCacheRepository, as_utc, session_scope
from moodflix.services.models import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


class MovieDetailCache:
    """Serve detail payloads younger than `ttl`; older rows count as misses.

    Stale rows may still be physically present until the next `put` or an
    explicit `purge_expired` removes them.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utcnow,
        repository: MovieCacheRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.ttl = ttl
        self._clock = clock
        self._repo = repository or MovieCacheRepository()

    def get(self, tmdb_id: int) -> dict[str, Any] | None:
        with session_scope(self._session_factory) as session:
            record = self._repo.get(session, tmdb_id)
            if record is None:
                return None
            age = self._clock() - as_utc(record.cached_at)
            if age >= self.ttl:
                logger.debug("Cache entry for movie %s is stale (age=%s)", tmdb_id, age)
                return None
            return dict(record.payload)

    def put(self, tmdb_id: int, payload: dict[str, Any]) -> None:
        now = self._clock()
        with session_scope(self._session_factory) as session:
            self._repo.upsert(session, tmdb_id=tmdb_id, payload=payload, cached_at=now)
            self._repo.purge_older_than(session, now - self.ttl)

    def purge_expired(self) -> int:
        with session_scope(self._session_factory) as session:
            removed = self._repo.purge_older_than(session, self._clock() - self.ttl)
        if removed:
            logger.info("Purged %s expired movie cache entries", removed)
        return removed
