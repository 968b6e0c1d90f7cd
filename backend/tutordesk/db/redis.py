"""Process-wide Redis client used for admin event publishing."""

import redis.asyncio as redis
import structlog

from tutordesk.core.config import get_settings

logger = structlog.get_logger(__name__)

_redis: redis.Redis | None = None


async def init_redis(url: str | None = None, client: redis.Redis | None = None) -> None:
    """Create the shared client (or adopt ``client``) and check it answers PING.

    No-op when a client is already installed.
    """
    global _redis

    if _redis is not None:
        return

    adopted = client is not None
    if client is None:
        client = redis.from_url(url or get_settings().redis_url, encoding="utf-8", decode_responses=True)

    await client.ping()
    _redis = client
    logger.debug("redis_client_ready", adopted=adopted)


async def close_redis() -> None:
    global _redis

    if _redis is not None:
        await _redis.aclose()
        _redis = None


def get_redis() -> redis.Redis:
    """Return the shared client; also used as a FastAPI dependency.

    Raises RuntimeError if init_redis() has not been called.
    """
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis
