"""
FastAPI Application Entry Point
Ideatrium API Server

Usage:
    # Development with auto-reload
    uvicorn ideatrium.app:app --reload

    # Production
    ideatrium serve --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ideatrium import __version__
from ideatrium.config.loader import get_config
from ideatrium.core.logger import get_logger
from ideatrium.core.services import AppServices
from ideatrium.handlers import register_fastapi_routes

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI application lifecycle management"""
    logger.info("========== Ideatrium Starting ==========")

    try:
        if app.state.services is None:
            config_loader = get_config()
            logger.info(f"✓ Configuration loaded: {config_loader.config_file}")
            app.state.services = AppServices(config_loader)

        await app.state.services.start()
        logger.info("========== Ideatrium Ready ==========")

    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise

    yield

    logger.info("========== Ideatrium Shutting Down ==========")
    await app.state.services.stop()


def create_app(services: Optional[AppServices] = None) -> FastAPI:
    """Create and configure FastAPI application

    @param services - Prebuilt service container; built from config on startup when omitted
    """
    app = FastAPI(
        title="Ideatrium API",
        description="Idea capture, impact/effort prioritization and task tracking",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_fastapi_routes(app, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "service": "Ideatrium API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        current = app.state.services
        if current is None or not current.is_running:
            return {"status": "starting", "service": "ideatrium"}
        return {
            "status": "healthy",
            "service": "ideatrium",
            "storage": current.storage_mode,
            "online": current.network_status.is_online,
            "aiConfigured": current.ai_service.client.configured,
        }

    logger.info("✓ FastAPI application created with routes")
    return app


app = create_app()


def main() -> None:
    config = get_config()
    host = config.get("server.host", "0.0.0.0")
    port = config.get("server.port", 8000)
    debug = config.get("server.debug", False)

    logger.info(f"Starting server at http://{host}:{port}")
    uvicorn.run(
        "ideatrium.app:app",
        host=host,
        port=port,
        reload=debug,
        log_level="debug" if debug else "info",
    )


if __name__ == "__main__":
    main()
