"""lognorm HTTP API - Main Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lognorm.api.v1 import router as api_v1_router
from lognorm.config import get_settings
from lognorm.exceptions import setup_exception_handlers
from lognorm.logtypes.registry import bootstrap_registry

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    # A registry error propagates and the application refuses to start
    app.state.registry = bootstrap_registry()

    yield

    logger.info("Shutting down %s", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="Log type registry and normalization pipeline",
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else "/api/openapi.json",
    lifespan=lifespan,
)

# Setup exception handlers for standardized error responses
setup_exception_handlers(app)

# Include API routers
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    registry = getattr(app.state, "registry", None)
    return {
        "status": "healthy" if registry is not None else "starting",
        "app": settings.app_name,
        "version": settings.app_version,
        "log_types": len(registry) if registry is not None else 0,
    }
