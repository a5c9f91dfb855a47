"""FastAPI server for the Producer Resolver.

Main entry point for the API server.
"""

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health, producers
from core import __version__
from core.config import get_settings
from core.observability.logging import configure_logging, get_logger, with_correlation
from producer_resolver.db import init_producer_db


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    init_producer_db(settings.producer_db_path)
    logger.info("Producer Resolver API starting up...")

    yield

    # Shutdown
    logger.info("Producer Resolver API shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Producer Resolver API",
        description="Fuzzy resolution of distiller and bottler names against the whisky catalogue",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        with with_correlation(request_id=request_id, route=request.url.path):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    # Include routers
    app.include_router(health.router, tags=["Health"])
    app.include_router(producers.router, prefix="/producers", tags=["Producers"])

    return app


# Default app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run("api.server:app", host=settings.api_host, port=settings.api_port, reload=True)
