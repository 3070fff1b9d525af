"""HTTP middleware stack and exception handlers."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rockspotter.config import Settings
from rockspotter.middleware.error_handler import setup_error_handlers
from rockspotter.middleware.logging import setup_logging
from rockspotter.middleware.rate_limit import RateLimitMiddleware
from rockspotter.middleware.request_id import RequestContextMiddleware

EXPOSED_HEADERS = ["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"]


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Install logging, error handlers and middleware.

    Starlette wraps middleware in reverse order of registration: CORS is
    registered last so that it also decorates 429 responses, and the
    request context sits outside the rate limiter so rejected requests are
    still logged with an id.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=EXPOSED_HEADERS,
    )
