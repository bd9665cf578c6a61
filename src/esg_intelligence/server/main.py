"""FastAPI application factory and server entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from esg_intelligence import __version__
from esg_intelligence.bootstrap import ServiceContainer, build_container
from esg_intelligence.config.settings import Settings, get_settings
from esg_intelligence.server.middleware import RequestIdMiddleware, register_exception_handlers
from esg_intelligence.server.routes import api_router
from esg_intelligence.telemetry import setup_logging

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
    background_tasks: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; defaults to ``get_settings()``
        container: Pre-built services; built from settings at startup when omitted
        background_tasks: Run the health monitor and cache sweep loops
    """
    settings = settings or (container.settings if container else get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        setup_logging(level=settings.log_level, format=settings.log_format)
        logger.info("service_starting", version=__version__, environment=settings.environment)

        services = container or build_container(settings)
        await services.start(background=background_tasks)
        app.state.container = services

        yield

        logger.info("service_stopping")
        await services.stop()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-provider ESG intelligence analysis with persistent result caching",
        version=__version__,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.rate_limit_requests}/minute"],
        enabled=settings.rate_limit_enabled,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Added in reverse order of execution
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/")
    async def root():
        return {
            "message": settings.app_name,
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "api": "/api",
        }

    return app


app = create_app()


def start_server(settings: Optional[Settings] = None) -> None:
    """Start the server programmatically."""
    settings = settings or get_settings()
    uvicorn.run(
        "esg_intelligence.server.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=settings.is_development,
    )


if __name__ == "__main__":
    start_server()
