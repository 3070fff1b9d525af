"""Redis connection pool.

Redis is optional for this service: without it the rate limiter lets every
request through and award notifications are not published.
"""

import json
from typing import Any

import redis.asyncio as redis
import structlog

logger = structlog.get_logger()

_pool: redis.Redis | None = None


async def init_redis(url: str | None) -> None:
    """Create the pool. An empty URL leaves Redis disabled."""
    global _pool  # noqa: PLW0603
    if not url:
        logger.info("redis_disabled")
        return
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
        health_check_interval=30,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool is not None:
        await _pool.aclose()
        _pool = None


def get_optional_redis() -> redis.Redis | None:
    """FastAPI dependency: the pool, or None while Redis is disabled."""
    return _pool


async def publish_json(client: Any, channel: str, payload: dict[str, Any]) -> None:  # noqa: ANN401
    """Publish a JSON message on a pub/sub channel."""
    await client.publish(channel, json.dumps(payload, separators=(",", ":")))
