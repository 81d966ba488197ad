# src/ideanest/main.py
"""Main entry point for the IdeaNest application."""

from __future__ import annotations

import logging
import traceback
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ideanest import __version__
from ideanest.api.v1 import (
    admin_router,
    auth_router,
    ideas_router,
    likes_router,
    system_router,
    users_router,
)
from ideanest.core.errors import IdeaNestError, TransientError
from ideanest.core.logging_config import configure_logging
from ideanest.core.settings import Settings, get_settings
from ideanest.db.session import build_engine, build_session_factory, create_tables
from ideanest.db.time import utcnow
from ideanest.schemas.common import ApiResponse
from ideanest.services.cache import CacheService, build_redis_client
from ideanest.services.tokens import TokenService

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, error: Any = None) -> JSONResponse:
    body = ApiResponse[Any](success=False, message=message, error=error)
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(body.model_dump(by_alias=True)),
    )


def _validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(location), "message": str(err.get("msg", "Invalid value"))})
    return details


def install_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Map every failure onto the response envelope."""

    @app.exception_handler(IdeaNestError)
    async def handle_app_error(request: Request, exc: IdeaNestError) -> JSONResponse:
        if isinstance(exc, TransientError):
            logger.warning("Transient failure on %s %s: %s", request.method, request.url.path, exc.message)
        return _error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(status.HTTP_400_BAD_REQUEST, "Validation failed", _validation_details(exc))

    @app.exception_handler(OperationalError)
    @app.exception_handler(PoolTimeoutError)
    async def handle_store_unavailable(request: Request, exc: Exception) -> JSONResponse:
        logger.warning("Database unavailable on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, TransientError.default_message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        error = None
        if settings.debug:
            error = {"type": type(exc).__name__, "traceback": traceback.format_exception(exc)}
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", error)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application; collaborators live on ``app.state``."""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = build_engine(settings)
        if settings.auto_create_tables:
            create_tables(engine)
        cache = CacheService(
            build_redis_client(settings),
            prefix=settings.cache_prefix,
            default_ttl=settings.cache_default_ttl,
        )
        app.state.engine = engine
        app.state.session_factory = build_session_factory(engine)
        app.state.cache = cache
        app.state.token_service = TokenService(settings)
        app.state.started_at = utcnow()
        logger.info("%s %s started", settings.app_name, __version__)
        try:
            yield
        finally:
            cache.close()
            engine.dispose()
            logger.info("%s stopped", settings.app_name)

    app = FastAPI(
        title=settings.app_name,
        description="Idea sharing API with signed-in and anonymous likes",
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Add GZip middleware for compression
    app.add_middleware(GZipMiddleware)

    install_exception_handlers(app, settings)

    app.include_router(system_router)
    for router in (auth_router, ideas_router, likes_router, users_router, admin_router):
        app.include_router(router, prefix=settings.api_prefix)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with basic information about the API."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "redoc": "/redoc",
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ideanest.main:app", host="0.0.0.0", port=8000, reload=get_settings().debug)
