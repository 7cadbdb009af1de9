"""FastAPI application entrypoint for Classpoints."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .api.v1.router import api_router
from .core.config import Settings, get_settings
from .core.database import Database

logger = logging.getLogger(__name__)


def _lifespan(database: Database):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        database.dispose()
        logger.info("classpoints database disposed")

    return lifespan


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Instantiate and configure the FastAPI application.

    ``database`` lets callers (tests in particular) hand in an isolated store.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if database is None:
        database = Database(settings.database_url, echo=settings.database_echo)
    if settings.auto_create_schema:
        database.create_all()

    app = FastAPI(title="Classpoints API", version="0.1.0", lifespan=_lifespan(database))
    app.state.settings = settings
    app.state.database = database
    app.include_router(api_router, prefix="/api/v1")

    logger.info("classpoints ready on %s", database.engine.url.render_as_string(hide_password=True))
    return app
