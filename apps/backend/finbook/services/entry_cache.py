"""Per-user entry list cache.

Holds each owner's full, ordered entry list as ``EntryOut`` snapshots under
``finbook:entries:<user_id>``. With ``FINBOOK_REDIS_URL`` set the keys live
in the Redis shared with the ARQ worker, so a write in any process clears
the key for all of them. Without Redis a process-local store with the same
interface is used. Every mutation path in :class:`EntryService` deletes the
owner's key; the TTL only bounds writes made outside the service.
"""

from __future__ import annotations

import fnmatch
import logging
import math
import time
from threading import Lock
from typing import Any, Callable, Optional

import redis
from pydantic import TypeAdapter

from finbook.core.config import settings
from finbook.schemas import EntryOut

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60
KEY_PREFIX = "finbook:entries"

_rows_adapter = TypeAdapter(list[EntryOut])


class LocalStore:
    """The subset of the redis client API the cache uses, kept in memory."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = Lock()
        self._items: dict[str, tuple[float, str]] = {}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            hit = self._items.get(key)
            if hit is None:
                return None
            expires_at, value = hit
            if self._clock() >= expires_at:
                del self._items[key]
                return None
            return value

    def setex(self, key: str, ttl: int, value: str) -> bool:
        with self._lock:
            self._items[key] = (self._clock() + ttl, value)
        return True

    def delete(self, *keys: str) -> int:
        with self._lock:
            return sum(1 for key in keys if self._items.pop(key, None) is not None)

    def keys(self, pattern: str) -> list[str]:
        with self._lock:
            return [key for key in self._items if fnmatch.fnmatchcase(key, pattern)]


def get_redis_client() -> redis.Redis:
    return redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
        health_check_interval=30,
    )


class EntryQueryCache:
    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        client: Any = None,
    ) -> None:
        self.ttl = max(1, math.ceil(ttl))
        self._clock = clock
        self._client = client

    @property
    def client(self) -> Any:
        """Lazy client: Redis when configured, otherwise a process-local store."""
        if self._client is None:
            if settings.REDIS_URL:
                logger.info("Entry cache backed by Redis")
                self._client = get_redis_client()
            else:
                self._client = LocalStore(self._clock)
        return self._client

    @staticmethod
    def key(user_id: int) -> str:
        return f"{KEY_PREFIX}:{user_id}"

    def get(self, user_id: int) -> tuple[EntryOut, ...] | None:
        try:
            raw = self.client.get(self.key(user_id))
        except redis.RedisError as exc:
            logger.error("Entry cache get failed for user %s: %s", user_id, exc)
            return None
        if raw is None:
            return None
        return tuple(_rows_adapter.validate_json(raw))

    def set(self, user_id: int, rows: list[EntryOut] | tuple[EntryOut, ...]) -> tuple[EntryOut, ...]:
        frozen = tuple(rows)
        try:
            self.client.setex(self.key(user_id), self.ttl, _rows_adapter.dump_json(list(frozen)).decode("utf-8"))
        except redis.RedisError as exc:
            logger.error("Entry cache set failed for user %s: %s", user_id, exc)
        return frozen

    def get_or_load(self, user_id: int, loader: Callable[[], list[EntryOut]]) -> tuple[EntryOut, ...]:
        cached = self.get(user_id)
        if cached is not None:
            logger.debug("Entry cache HIT user=%s", user_id)
            return cached
        logger.debug("Entry cache MISS user=%s", user_id)
        return self.set(user_id, loader())

    def invalidate(self, user_id: int) -> None:
        try:
            self.client.delete(self.key(user_id))
        except redis.RedisError as exc:
            logger.error("Entry cache invalidation failed for user %s: %s", user_id, exc)

    def clear(self) -> None:
        keys = self.client.keys(f"{KEY_PREFIX}:*")
        if keys:
            self.client.delete(*keys)


entry_cache = EntryQueryCache()
