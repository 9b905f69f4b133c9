"""Redis connection — backs the rate limiter.

Learn: One connection pool per process, opened in the app lifespan
and closed on shutdown. Redis is optional: when it isn't reachable
the app still serves requests, just without rate limiting.

Key naming: lunay:rl:{ip}:{bucket}:{minute}
"""

from typing import Optional

import redis.asyncio as aioredis

from lunay.config import settings

KEY_PREFIX = "lunay"

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Initialize the Redis connection pool."""
    global _redis
    client = aioredis.from_url(
        url or settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Verify connection before publishing the client
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


def set_redis(client: Optional[aioredis.Redis]) -> None:
    """Install (or clear) the process-wide client. Used by tests."""
    global _redis
    _redis = client


def rate_limit_key(client_ip: str, bucket: str, window: int) -> str:
    return f"{KEY_PREFIX}:rl:{client_ip}:{bucket}:{window}"


async def redis_status() -> str:
    """'ok', 'unavailable' (never connected) or 'error' (ping failed)."""
    if _redis is None:
        return "unavailable"
    try:
        await _redis.ping()
    except Exception:
        return "error"
    return "ok"
