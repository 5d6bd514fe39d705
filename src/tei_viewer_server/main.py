"""
Viewer Service Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Deterministic startup
- Centralized router registration
- Domain errors mapped to HTTP in one place
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from fastapi import FastAPI

from .config import settings
from .core.errors import (
    malformed_markup_handler,
    storage_error_handler,
    unhandled_exception_handler,
)
from .core.logging import configure_logging
from .storage.client import StorageClientError
from .tei.parser import MalformedMarkupError

from .api import (
    file_routes,
    health_routes,
    tei_routes,
)


logger = logging.getLogger("tei.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    configure_logging(settings.log_level)

    app = FastAPI(
        title="tei-viewer-server",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # --------------------------------------------------------------
    # Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(MalformedMarkupError, malformed_markup_handler)
    app.add_exception_handler(StorageClientError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(tei_routes.router)
    app.include_router(file_routes.router)

    # --------------------------------------------------------------
    # Startup Validation Hook
    # --------------------------------------------------------------

    @app.on_event("startup")
    async def _startup_validation() -> None:
        """
        Report missing secrets at startup.

        TEI parsing works without them; only the file endpoints need the
        identity and storage secrets.
        """
        logger.info("Starting tei-viewer-server")

        if settings.auth_jwt_secret is None:
            logger.warning("auth_jwt_secret is not set; /files endpoints will return 500")
        if settings.storage_jwt_secret is None:
            logger.warning("storage_jwt_secret is not set; storage requests will fail")

    @app.on_event("shutdown")
    async def _shutdown_cleanup() -> None:
        logger.info("Shutting down tei-viewer-server")

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
