"""Redis key-value backend used by the field cache.

Only the minimal surface the engine needs is exposed: GET, SET, DEL, EXPIRE
and TTL. Unlike a best-effort cache service, errors from Redis are not caught
here; a failed round trip propagates to the caller.
"""

from typing import Optional, Protocol, Union
from urllib.parse import urlparse

import redis

from fieldcache.core.config import Settings
from fieldcache.core.logging import get_logger, log_cache_operation

logger = get_logger(__name__)


def ensure_str(value: Union[str, bytes, None]) -> Optional[str]:
    """Ensure value is a string, handling both bytes and str.

    Redis with decode_responses=True returns strings directly.
    This helper handles both cases for compatibility.
    """
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return value


def create_redis_client(settings: Settings) -> redis.Redis:
    """Build the shared Redis client from settings.

    The logical database always comes from REDIS_DB_NUM, never from the URL path.
    """
    uri = urlparse(settings.resolved_redis_url)
    client = redis.Redis(
        host=uri.hostname or "localhost",
        port=uri.port or 6379,
        password=uri.password,
        db=settings.redis_db_num,
        ssl=uri.scheme == "rediss",
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_socket_timeout,
    )
    logger.info("Redis client configured", host=uri.hostname, port=uri.port,
                db=settings.redis_db_num)
    return client


class KeyValueBackend(Protocol):
    """Storage operations the cache engine relies on."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> bool: ...

    def expire(self, key: str, ttl: int) -> bool: ...

    def ttl(self, key: str) -> int: ...


class RedisBackend:
    """Synchronous Redis backend. Each call is one blocking round trip."""

    def __init__(self, client: redis.Redis):
        self.redis = client

    def get(self, key: str) -> Optional[str]:
        """Get the raw stored string, None on miss."""
        value = ensure_str(self.redis.get(key))
        log_cache_operation(logger, "get", key, hit=value is not None)
        return value

    def set(self, key: str, value: str) -> None:
        """Store a value without expiry."""
        self.redis.set(key, value)
        log_cache_operation(logger, "set", key)

    def delete(self, key: str) -> bool:
        """Delete a key. True if a key was removed."""
        deleted = bool(self.redis.delete(key))
        log_cache_operation(logger, "delete", key, deleted=deleted)
        return deleted

    def expire(self, key: str, ttl: int) -> bool:
        """Set TTL for existing key. False if the key does not exist."""
        applied = bool(self.redis.expire(key, ttl))
        log_cache_operation(logger, "expire", key, ttl=ttl, applied=applied)
        return applied

    def ttl(self, key: str) -> int:
        """Remaining TTL in seconds (-1 no expiry, -2 missing)."""
        return self.redis.ttl(key)

    def startup(self) -> None:
        """Verify the connection. Raises if Redis is unreachable."""
        self.redis.ping()
        logger.info("Redis cache backend connected")

    def shutdown(self) -> None:
        """Close client connections."""
        self.redis.close()
        logger.info("Redis cache backend closed")
