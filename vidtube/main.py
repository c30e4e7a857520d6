"""VidTube ASGI app: routers, middleware and the error envelope handlers."""

from contextlib import asynccontextmanager

from dotenv import load_dotenv

# .env must be loaded before Settings is first built
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from vidtube.api.middleware import CorrelationIdMiddleware
from vidtube.api.responses import error_envelope
from vidtube.api.routes import api_router, router
from vidtube.config import get_settings
from vidtube.exceptions import ApiError
from vidtube.services.logging_service import configure_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the pool and bring the schema up to date before serving."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    logger = get_logger("main")

    from vidtube.database import close_database, init_database, run_migrations

    # No database, no traffic: a failure here aborts startup.
    try:
        await init_database()
        applied = await run_migrations()
    except Exception as e:
        logger.critical("database_unavailable_at_startup", error=str(e))
        raise

    logger.info(
        "vidtube_started",
        environment=settings.environment,
        migrations_applied=applied,
    )

    yield

    from vidtube.services.media_service import get_media_service

    await get_media_service().close()
    await close_database()

    logger.info("application_shutdown")


app = FastAPI(
    title="VidTube API",
    description="Video sharing backend: accounts, sessions, videos and comments",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Translate domain errors into the response envelope."""
    logger = structlog.get_logger()
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "request_failed",
        error_kind=exc.kind.value,
        status_code=exc.status_code,
        detail=exc.message,
    )
    return error_envelope(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors as 400 Bad Request."""
    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}"
    else:
        detail = "Request validation failed"

    structlog.get_logger().warning("validation_error", detail=detail)
    return error_envelope(400, detail)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_envelope(
        exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the failure, never leak a stack trace."""
    structlog.get_logger().exception(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return error_envelope(500, "Internal server error")


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Added last so it wraps CORS and sees every response
app.add_middleware(CorrelationIdMiddleware)

app.include_router(router)
app.include_router(api_router)
