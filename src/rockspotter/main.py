"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from rockspotter.achievements.router import router as achievements_router
from rockspotter.achievements.seed import seed_achievements
from rockspotter.config import get_settings
from rockspotter.database import close_db, create_schema, init_db, session_scope
from rockspotter.health.router import router as health_router
from rockspotter.hunts.router import router as hunts_router
from rockspotter.middleware import setup_middleware
from rockspotter.redis_client import close_redis, init_redis
from rockspotter.rocks.router import router as rocks_router
from rockspotter.users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    if settings.auto_create_schema:
        await create_schema()

    # Seed the default catalog (idempotent)
    if settings.seed_achievements:
        try:
            async with session_scope() as db:
                await seed_achievements(db)
        except SQLAlchemyError:
            logger.warning("Achievement seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Rock Spotter API",
        description="Post rocks, run hunts, earn achievements",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(achievements_router)
    app.include_router(rocks_router)
    app.include_router(hunts_router)

    return app


app = create_app()
