"""App Factory — FastAPI application wired for dtoforge validators.

Invariants:
    - Routers registered explicitly by the caller (no auto-discovery)
    - Global error handlers map DtoForgeError → structured JSON responses
    - Logging configured on startup via lifespan, from Settings

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Factory instead of a module-level app: dtoforge is a library, hosts own their app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from dtoforge.api.error_handlers import register_error_handlers
from dtoforge.config import get_settings
from dtoforge.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    logger.info(f"{app.title} started")
    yield
    logger.info(f"{app.title} shutting down")


def create_app(*routers: APIRouter, title: str = "dtoforge API") -> FastAPI:
    app = FastAPI(title=title, lifespan=lifespan)
    for router in routers:
        app.include_router(router)
    register_error_handlers(app)
    return app
