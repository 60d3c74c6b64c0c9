"""
Main FastAPI application.

This is the entry point for the API server:

    uvicorn taskhub.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskhub import __version__
from taskhub.core.config import settings
from taskhub.core.logging_setup import setup_logging
from taskhub.db.session import create_tables, engine
from taskhub.errors import register_error_handlers
from taskhub.realtime.hub import RealtimeHub
from taskhub.realtime.registry import ConnectionRegistry
from taskhub.routers import auth, health, notification, realtime, task

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: configure logging and create tables.
    Shutdown: release pooled database connections.
    """
    setup_logging(settings.LOG_LEVEL, debug=settings.DEBUG)
    logger.info("Starting %s (%s)", settings.APP_NAME, settings.ENVIRONMENT)

    if settings.AUTO_CREATE_TABLES:
        await create_tables()

    yield

    logger.info("Shutting down %s", settings.APP_NAME)
    await engine.dispose()


def create_app() -> FastAPI:
    """Build the application with a fresh realtime hub."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Collaborative task management API with realtime updates",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.hub = RealtimeHub(ConnectionRegistry())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # Include routers (API endpoints)
    app.include_router(health.router, prefix=settings.API_PREFIX, tags=["Health"])
    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(task.router, prefix=settings.API_PREFIX)
    app.include_router(notification.router, prefix=settings.API_PREFIX)
    app.include_router(realtime.router)

    @app.get("/")
    async def root():
        return {"success": True, "message": f"{settings.APP_NAME} is running", "version": __version__}

    return app


app = create_app()
