import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from recall.clock import SystemClock
from recall.config import get_settings
from recall.db.factory import make_database
from recall.db.redis.redis import close_redis_pool, ping_redis
from recall.exceptions import (
    DraftGenerationError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    RateLimitError,
)
from recall.middlewares import log_error, request_logging_middleware
from recall.routers import flashcards, generation_requests, ping, study_sessions
from recall.schemas.api.common import ErrorBody, ErrorResponse
from recall.services.rate_limit.factory import make_generation_rate_limiter

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan for the API.
    """
    logger.info("Starting flashcards API...")

    settings = get_settings()
    app.state.settings = settings
    app.state.clock = SystemClock()

    database = make_database()
    app.state.database = database
    if database.health_check():
        logger.info("Database connected")
    else:
        logger.warning("Database not reachable at startup")

    app.state.rate_limiter = make_generation_rate_limiter()
    logger.info(f"Rate limiter initialized: backend={settings.rate_limit.backend}")
    if settings.rate_limit.backend == "redis" and not await ping_redis():
        logger.warning("Redis not reachable, generation requests will fail until it is")

    logger.info("API ready")
    yield

    database.teardown()
    if settings.rate_limit.backend == "redis":
        await close_redis_pool()
    logger.info("API shutdown complete")


def error_response(status_code: int, code: str, message: str, headers=None, **details) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return error_response(status.HTTP_404_NOT_FOUND, "NOT_FOUND", str(exc))

    @app.exception_handler(InvalidStateError)
    async def invalid_state_handler(request: Request, exc: InvalidStateError):
        return error_response(
            status.HTTP_409_CONFLICT,
            "INVALID_STATE",
            str(exc),
            current_status=exc.current_status,
            expected_status=exc.expected_status,
        )

    @app.exception_handler(RateLimitError)
    async def rate_limit_handler(request: Request, exc: RateLimitError):
        return error_response(
            status.HTTP_429_TOO_MANY_REQUESTS,
            "RATE_LIMIT_EXCEEDED",
            "Too many requests. Please try again later.",
            headers={
                "Retry-After": str(exc.retry_after),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(exc.reset_at.timestamp())),
            },
            reset_at=exc.reset_at.isoformat(),
        )

    @app.exception_handler(DraftGenerationError)
    async def draft_generation_handler(request: Request, exc: DraftGenerationError):
        logger.warning(f"AI service error: {exc} ({exc.reason})")
        return error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY, "AI_SERVICE_ERROR", str(exc), reason=exc.reason
        )

    @app.exception_handler(PersistenceError)
    async def persistence_handler(request: Request, exc: PersistenceError):
        log_error(f"{exc}: {exc.cause}", request.method, request.url.path)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            "An unexpected error occurred. Please try again later.",
        )


app = FastAPI(
    title="Recall",
    description="Spaced-repetition flashcards with AI-generated drafts.",
    version=get_settings().app_version,
    lifespan=lifespan,
)

app.middleware("http")(request_logging_middleware)
register_exception_handlers(app)

app.include_router(ping.router, prefix="/api/v1")
app.include_router(flashcards.router, prefix="/api/v1")
app.include_router(generation_requests.router, prefix="/api/v1")
app.include_router(study_sessions.router, prefix="/api/v1")


if __name__ == "__main__":
    uvicorn.run(app, port=8000, host="0.0.0.0")
