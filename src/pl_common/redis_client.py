"""Redis client factory — rate limiting counters and Pub/Sub event channels.

Durable state (games, players, requests, approvals) lives in PostgreSQL only.
"""

import json
import logging
from typing import Any

import redis.asyncio as aioredis

from config.settings import settings

logger = logging.getLogger(__name__)

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None


async def publish_json(channel: str, payload: dict[str, Any]) -> int:
    """Publish *payload* as JSON on *channel*; returns the subscriber count."""
    redis = await get_redis()
    receivers: int = await redis.publish(channel, json.dumps(payload, default=str))
    logger.debug("published %s to %s (%d receivers)", payload.get("event"), channel, receivers)
    return receivers
