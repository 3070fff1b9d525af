"""Liveness, readiness and version probes."""

import structlog
from fastapi import APIRouter, Depends, Response
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.config import get_settings
from rockspotter.database import get_session
from rockspotter.redis_client import get_optional_redis

logger = structlog.get_logger()

router = APIRouter()

PASSING = ("ok", "disabled")


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("readiness_database_failed", error=str(exc))
        return f"error: {exc.__class__.__name__}"
    return "ok"


async def _check_redis() -> str:
    client = get_optional_redis()
    if client is None:
        return "disabled"
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("readiness_redis_failed", error=str(exc))
        return f"error: {exc.__class__.__name__}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    response: Response,
    db: AsyncSession = Depends(get_session),  # noqa: B008
) -> dict[str, object]:
    """503 until the database answers. A disabled Redis does not count against readiness."""
    checks = {"database": await _check_database(db), "redis": await _check_redis()}
    ready = all(status in PASSING for status in checks.values())
    if not ready:
        response.status_code = 503
    return {"status": "ready" if ready else "degraded", "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"version": settings.app_version, "environment": settings.environment}
