# src/duelrank/main.py

"""Main FastAPI application for DuelRank."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import leaderboard, match, player
from .config import get_settings
from .db.models import Base
from .db.session import engine
from .exceptions import (
    ConflictError,
    DuelRankError,
    DuplicateResourceError,
    LockTimeoutError,
    ResourceNotFoundError,
    ValidationError,
)
from .middleware.logging import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown events."""
    # Production schemas come from Alembic; this is for local development
    if get_settings().create_tables_on_startup:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created on startup")
    yield
    # Shutdown: Dispose of database connections gracefully
    await engine.dispose()


app = FastAPI(title="DuelRank API", lifespan=lifespan)

# Add middleware (order matters - first added = outermost)
app.add_middleware(RequestLoggingMiddleware)


def _error_response(status_code: int, exc: DuelRankError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


# =============================================================================
# Global Exception Handlers
# =============================================================================


@app.exception_handler(ResourceNotFoundError)
async def resource_not_found_handler(
    request: Request, exc: ResourceNotFoundError
) -> JSONResponse:
    """Handle all resource not found errors -> 404."""
    logger.warning("Resource not found: %s", exc.message, extra=exc.details)
    return _error_response(404, exc)


@app.exception_handler(ValidationError)
async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle all validation errors -> 422."""
    logger.warning("Validation error: %s", exc.message, extra=exc.details)
    return _error_response(422, exc)


@app.exception_handler(DuplicateResourceError)
async def duplicate_resource_handler(
    request: Request, exc: DuplicateResourceError
) -> JSONResponse:
    """Handle unique-key violations -> 409."""
    logger.warning("Duplicate resource: %s", exc.message, extra=exc.details)
    return _error_response(409, exc)


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """Handle update conflicts that outlived the retry budget -> 409."""
    logger.error("Update conflict: %s", exc.message, extra=exc.details)
    return _error_response(409, exc)


@app.exception_handler(LockTimeoutError)
async def lock_timeout_handler(request: Request, exc: LockTimeoutError) -> JSONResponse:
    """Handle lease timeouts -> 503 with a Retry-After hint."""
    logger.error("Lease timeout: %s", exc.message, extra=exc.details)
    response = _error_response(503, exc)
    response.headers["Retry-After"] = str(exc.retry_after)
    return response


@app.exception_handler(DuelRankError)
async def duelrank_error_handler(request: Request, exc: DuelRankError) -> JSONResponse:
    """Catch-all for any other DuelRank errors -> 500."""
    logger.error("DuelRank error: %s", exc.message, extra=exc.details, exc_info=True)
    return _error_response(500, exc)


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Catch-all for database errors not mapped by the store."""
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal database error occurred"},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal server error occurred"},
    )


# Include routers into the main application
app.include_router(player.router)
app.include_router(match.router)
app.include_router(leaderboard.router)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
