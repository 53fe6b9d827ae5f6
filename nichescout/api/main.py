"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import Settings
from ..database import Database
from ..errors import NicheScoutError
from ..log import setup_logging
from ..store.service import HistoryService
from .routers import functions, store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: initialize database and store on startup."""
    settings: Settings = app.state.settings
    db = Database.from_path(settings.database_path)
    await db.init()

    app.state.history = HistoryService(db)
    logger.info("Started with Keepa domain %s", settings.keepa.domain)

    yield

    app.state.history.feed.close()
    await db.dispose()


async def handle_nichescout_error(request: Request, exc: NicheScoutError) -> JSONResponse:
    """Render taxonomy errors as callable error bodies."""
    return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})


def add_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NicheScoutError, handle_nichescout_error)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Niche Scout API",
        description="Keepa-backed product search with per-user history",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_error_handlers(app)

    # Include routers
    app.include_router(functions.router, prefix="/api/functions", tags=["functions"])
    app.include_router(store.router, prefix="/api/store", tags=["store"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
