"""
Study Hub recommendation service.

Application factory wiring configuration, logging, error handling, rate
limiting and the API routers.

Run with:
    uvicorn studyhub.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyhub import __version__
from studyhub.config import settings
from studyhub.db import engine, init_db
from studyhub.middleware import setup_error_handling, setup_rate_limiting
from studyhub.routers import activities_router, health_router, ml_activity_router
from studyhub.services.recommendation import UserLockRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} v{__version__}")
    await init_db()
    yield
    await engine.dispose()
    logger.info(f"{settings.APP_NAME} stopped")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(title=settings.APP_NAME, version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(app, debug=settings.DEBUG)
    setup_rate_limiting(app, enabled=settings.RATE_LIMIT_ENABLED)

    # Shared across requests so generation for one user is serialized
    app.state.recommendation_locks = UserLockRegistry()

    app.include_router(health_router.router)
    app.include_router(activities_router.router)
    app.include_router(ml_activity_router.router)

    return app


app = create_app()
