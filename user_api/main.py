"""FastAPI application entry point with lifecycle management."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .container import Container, get_container
from .routes import router
from .db import create_tables, dispose_engine
from .logger import logger
from .middleware import (
    add_request_id_middleware,
    request_logging_middleware,
    internal_error_response,
    security_headers_middleware,
)
from .monitoring import setup_monitoring

# ==================== Application Lifecycle ====================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - creates the schema on startup, closes the pool on shutdown."""
    container: Container = app.state.container
    logger.info(f"Starting {settings.APP_NAME} in {settings.APP_ENV} mode")

    if settings.DB_CREATE_TABLES:
        await create_tables(container.engine)
    else:
        logger.info("Database schema managed by Alembic migrations")

    logger.info(f"{settings.APP_NAME} started successfully - ready to accept requests")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await dispose_engine(container.engine)
    logger.info(f"{settings.APP_NAME} shutdown complete")

# ==================== Error Handlers ====================


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render router-level errors (unmatched path, wrong method) as {error}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for failures outside the logging middleware (e.g. in outer middleware)."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        f"[{request_id}] Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return internal_error_response()

# ==================== Application Setup ====================


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI application around container (the process container by default)."""
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.container = container or get_container()

    # Middleware registration (last registered = outermost layer)
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(add_request_id_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(router)

    setup_monitoring(app)
    return app


app = create_app()
