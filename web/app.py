"""
FastAPI application exposing the exchange lifecycle engine.

Production deployment configuration via environment variables.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.exchange import __version__ as ENGINE_VERSION
from utils.config import Config
from web.exchange_routes import router as exchange_router


logger = logging.getLogger(__name__)

# =============================================================================
# Environment Configuration
# =============================================================================

# Production mode detection
IS_PRODUCTION = os.getenv("RAILWAY_ENVIRONMENT") is not None or os.getenv("PRODUCTION", "").lower() == "true"

# Development fallback origins, used only outside production
DEV_ORIGINS = ["http://localhost:3000", "http://localhost:8000", "http://127.0.0.1:8000"]


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()
    debug_mode = config.debug and not IS_PRODUCTION

    app = FastAPI(
        title="Exchange Lifecycle Engine",
        description="Stage, deadline and participant resolution for 1031 exchanges",
        version=ENGINE_VERSION,
        # Production settings: disable docs/redoc for private deployment
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=debug_mode,
    )
    app.state.config = config

    # Healthcheck endpoints are registered first and perform no IO
    @app.get("/", include_in_schema=False)
    def root():
        """Root healthcheck. No dependencies, no IO."""
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        """Secondary health endpoint. No dependencies, no IO."""
        return {"status": "healthy"}

    # CORS middleware - locked down for production
    allowed_origins = config.allowed_origins
    if not allowed_origins and not IS_PRODUCTION:
        allowed_origins = DEV_ORIGINS
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )

    app.include_router(exchange_router)

    @app.get("/api/health")
    async def api_health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": ENGINE_VERSION,
            "environment": "production" if IS_PRODUCTION else "development",
        }

    logger.debug(
        "Exchange engine app created (operator domains: %s)",
        ", ".join(config.operator_email_domains),
    )
    return app


# Create app instance for uvicorn
app = create_app()
