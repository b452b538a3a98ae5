"""
Wishlist API

FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from fastapi import FastAPI

from wishlist import __version__
from .schemas import HealthResponse
from .routes import auth_router, wishlist_router, users_router, comments_router
from .middleware import (
    setup_cors,
    setup_content_type_check,
    setup_logging,
    setup_exception_handlers,
    AccessLogConfig,
    get_cors_config,
)
from .dependencies import (
    get_settings,
    init_database,
    create_tables,
    dispose_database,
    Settings,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Opens the database engine and creates missing tables on startup, and
    releases pooled connections on shutdown.
    """
    settings = app.state.settings
    logger.info(f"Starting wishlist in {settings.environment} mode")

    try:
        logger.info("Initializing database...")
        init_database(settings)
        await create_tables()

        logger.info(f"Wishlist listening on {settings.host}:{settings.port}")

        yield

    finally:
        logger.info("Shutting down wishlist...")
        await dispose_database()
        logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(settings: Settings = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Wishlist",
        description="Invite-only shared wishlists.",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ==========================================================================
    # Middleware (the last one added is the outermost)
    # ==========================================================================

    # 1. Exception handling
    setup_exception_handlers(app)

    # 2. JSON bodies only (innermost)
    setup_content_type_check(app)

    # 3. CORS
    setup_cors(app, config=get_cors_config(settings.environment))

    # 4. Logging (outermost, sees every response including 415s)
    setup_logging(
        app,
        config=AccessLogConfig(log_bodies=settings.debug),
        structured=settings.environment != "development",
    )

    # ==========================================================================
    # Routers
    # ==========================================================================

    api_prefix = "/api"

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(wishlist_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    app.include_router(comments_router, prefix=api_prefix)

    # ==========================================================================
    # Root Routes
    # ==========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health_check() -> HealthResponse:
        """Liveness check."""
        return HealthResponse(status="healthy", version=__version__)

    return app


# =============================================================================
# Application Instance
# =============================================================================

app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def main():
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "wishlist.api.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="debug" if settings.debug else "info",
        # Drain in-flight requests for at most this long on SIGINT/SIGTERM
        timeout_graceful_shutdown=settings.shutdown_timeout,
    )


if __name__ == "__main__":
    main()
