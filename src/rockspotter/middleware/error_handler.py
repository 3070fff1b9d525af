"""Exception handlers. Every error body is JSON with a ``detail`` key."""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from rockspotter.errors import RockSpotterError

logger = structlog.get_logger()


def _error(status_code: int, detail: object, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, **extra})


async def _domain_error(_request: Request, exc: RockSpotterError) -> JSONResponse:
    logger.info("request_rejected", status=exc.status_code, error=type(exc).__name__, reason=exc.message)
    return _error(exc.status_code, exc.message)


async def _integrity_error(_request: Request, exc: IntegrityError) -> JSONResponse:
    # A unique key lost a race with a concurrent request
    logger.warning("integrity_conflict", error=str(exc.orig))
    return _error(409, "Conflicting update, retry the request")


async def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = _error(exc.status_code, exc.detail)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(422, "Validation error", errors=jsonable_encoder(exc.errors()))


async def _unhandled_error(_request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_exception", error=str(exc), exc_info=exc)
    return _error(500, "Internal server error")


def setup_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RockSpotterError, _domain_error)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _http_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error)
