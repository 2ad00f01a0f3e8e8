"""Optional Redis client backing the deferred-draft retry queue.

The service runs without Redis: drafts that hit a quota limit are then only
logged instead of queued for replay.
"""

import redis.asyncio as redis
import structlog

from ideaflow.core.config import get_settings

logger = structlog.get_logger(__name__)

_redis: redis.Redis | None = None


async def init_redis(url: str | None = None) -> redis.Redis | None:
    """Connect and ping. Returns the client, or None when Redis is unreachable."""
    global _redis

    if _redis is not None:
        return _redis

    client = redis.from_url(url or get_settings().redis_url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except (redis.RedisError, OSError) as e:
        await client.aclose()
        logger.warning("redis_unavailable", error=str(e), error_type=type(e).__name__)
        return None

    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis

    if _redis is not None:
        await _redis.aclose()
        _redis = None


def get_redis() -> redis.Redis | None:
    """The shared client, or None if init_redis() did not connect."""
    return _redis
