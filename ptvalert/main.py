"""FastAPI application factory."""
from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from ptvalert.api.api import api_router, root_router
from ptvalert.config import Settings, get_settings
from ptvalert.core.log_config import configure_logging
from ptvalert.services.notification_service import build_push_sender
from ptvalert.utils.exceptions import (
    PtvAlertException,
    handle_application_error,
    handle_unexpected_error,
)
from ptvalert.utils.kv import build_kv_store

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}

tags_metadata: List[dict[str, str]] = [
    {"name": "markers", "description": "Create, read, update and delete map markers."},
    {"name": "notifications", "description": "Manage push subscriptions and send notifications."},
    {"name": "users", "description": "Admin and ban flags keyed by user id."},
]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application instance."""

    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await app.state.kv_store.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Map marker alerts with Web Push notifications.",
        version=settings.VERSION,
        openapi_tags=tags_metadata,
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.kv_store = build_kv_store(settings)
    app.state.push_sender = build_push_sender(settings)

    @app.middleware("http")
    async def cors_and_access_log(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Answer preflights and stamp CORS headers on every response."""

        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            response = await handle_unexpected_error(request, exc)

        response.headers.update(CORS_HEADERS)
        logger.info(
            "{method} {path} -> {status_code}",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return response

    app.add_exception_handler(PtvAlertException, handle_application_error)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = sorted({".".join(str(part) for part in err["loc"][1:]) or "body" for err in exc.errors()})
        logger.warning("Request validation failed", path=request.url.path, fields=fields)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request: " + ", ".join(fields),
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.include_router(root_router)
    return app


app = create_app()
