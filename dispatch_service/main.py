"""Dispatch Service — FastAPI application factory.

Coordinates customers, drivers and orders: the order lifecycle, the
pending-order queue and driver assignment, persisted as JSON collections.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

import structlog

from dispatch_service import __version__
from dispatch_service.core.config import DispatchServiceSettings, settings
from dispatch_service.core.errors import DispatchError
from dispatch_service.core.events import lifespan
from dispatch_service.routers import admin, auth, drivers, notifications, orders
from dispatch_service.routers.health import build_health_router

from shared.logging import setup_logging
from shared.middleware import RequestContextMiddleware

log = structlog.get_logger()


async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    level = "error" if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else "info"
    getattr(log, level)("dispatch_error", error=exc.code, detail=exc.message, path=request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message},
    )


def create_app(app_settings: DispatchServiceSettings | None = None) -> FastAPI:
    """Construct and return the FastAPI application."""
    app_settings = app_settings or settings
    setup_logging(
        log_level=app_settings.log_level,
        json_logs=app_settings.json_logs,
        service_name=app_settings.service_name,
    )

    application = FastAPI(
        title="KurirKan Dispatch Service",
        version=__version__,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        lifespan=lifespan,
    )
    application.state.settings = app_settings

    application.add_middleware(RequestContextMiddleware)
    application.add_exception_handler(DispatchError, dispatch_error_handler)

    application.include_router(build_health_router(application, app_settings.service_name))
    application.include_router(auth.router)
    application.include_router(orders.router)
    application.include_router(drivers.router)
    application.include_router(notifications.router)
    application.include_router(admin.router)

    return application


app = create_app()
