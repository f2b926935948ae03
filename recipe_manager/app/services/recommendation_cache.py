"""
Short-lived key/value cache for feed recommendations.

Concurrent writers for the same key simply overwrite each other; entries are a
convenience, never a source of truth.
"""
import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from redis import Redis
from redis.exceptions import RedisError

from recipe_manager.app.core.config import get_settings

logger = logging.getLogger(__name__)


class RecommendationCache(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[str]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: int) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryRecommendationCache(RecommendationCache):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, str]] = {}

    def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (self._clock() + ttl_seconds, value)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)


class RedisRecommendationCache(RecommendationCache):
    """Redis-backed cache. Redis errors degrade to cache misses."""

    def __init__(self, conn: Redis):
        self._conn = conn

    def get(self, key: str) -> Optional[str]:
        try:
            raw = self._conn.get(key)
        except RedisError as exc:
            logger.warning("Recommendation cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self._conn.setex(key, ttl_seconds, value)
        except RedisError as exc:
            logger.warning("Recommendation cache write failed for %s: %s", key, exc)

    def delete(self, key: str) -> None:
        try:
            self._conn.delete(key)
        except RedisError as exc:
            logger.warning("Recommendation cache delete failed for %s: %s", key, exc)


_default_cache: Optional[RecommendationCache] = None


def get_recommendation_cache() -> RecommendationCache:
    """Get or create the process-wide cache, Redis-backed when REDIS_URL is set."""
    global _default_cache
    if _default_cache is None:
        settings = get_settings()
        if settings.redis_url:
            _default_cache = RedisRecommendationCache(Redis.from_url(settings.redis_url))
            logger.info("Using Redis recommendation cache")
        else:
            _default_cache = InMemoryRecommendationCache()
            logger.info("REDIS_URL not set, using in-process recommendation cache")
    return _default_cache
