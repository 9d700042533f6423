"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vesper.api.dependencies import get_session_manager
from vesper.api.middleware import vesper_error_handler
from vesper.api.routes import catalog, sessions
from vesper.models.errors import VesperError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Provider HTTP clients are shared by every session
    if get_session_manager.cache_info().currsize:
        await get_session_manager().aclose()
        logger.info("Closed provider clients")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Vesper",
        description="Production workflow core for spiritual short videos",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(VesperError, vesper_error_handler)

    app.include_router(sessions.router)
    app.include_router(catalog.router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": "0.1.0"}

    return app


app = create_app()
