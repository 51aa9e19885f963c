"""FastAPI application factory."""

from __future__ import annotations

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from staffdir_shared.config import settings
from staffdir_shared.logging import configure_logging

from staffdir_api.errors import register_exception_handlers
from staffdir_api.middleware.logging import LoggingMiddleware
from staffdir_api.middleware.rate_limit import RateLimitMiddleware
from staffdir_api.routers.api import api_router
from staffdir_api.routers.health import router as health_router

logger = structlog.get_logger()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Staffing Directory API",
        description="Recruiting agency directory: claims, compliance and labor requests",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Custom middleware (order matters: last added = first executed)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(LoggingMiddleware)

    register_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(api_router)

    logger.info("app_created", cors_origins=settings.cors_origins_list)
    return app


app = create_app()
