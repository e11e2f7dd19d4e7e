"""
Intake API - FastAPI application entry point.

Run locally:
    uvicorn intake.main:app --reload
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from intake.api.v1 import api_router
from intake.api.v1 import health
from intake.api.v1.error_handlers import register_exception_handlers
from intake.config.settings import Settings, get_settings
from intake.core.logging import RequestIDMiddleware, setup_logging
from intake.database.session import create_all_tables, dispose_engine
from intake.utils.logging import get_project_name, get_project_version

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings)
        if settings.ENV == "development":
            await create_all_tables()
        logger.info("app.startup", extra={"env": settings.ENV, "version": get_project_version()})
        yield
        await dispose_engine()
        logger.info("app.shutdown")

    app = FastAPI(
        title=get_project_name("intake-api"),
        version=get_project_version(),
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    # added last so it wraps everything, CORS included
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(api_router)
    return app


app = create_app()
