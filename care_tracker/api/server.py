"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from care_tracker import __version__
from care_tracker.api.routes import router
from care_tracker.api.middleware import setup_cors
from care_tracker.config import DB_APPLY_SCHEMA
from care_tracker.db.connection import db
from care_tracker.db.schema import create_schema
from care_tracker.exceptions import CareTrackerError, RecordNotFoundError, ValidationError
from care_tracker.services.container import init_container

logger = logging.getLogger(__name__)


def status_code_for(error: CareTrackerError) -> int:
    """HTTP status for an application error"""
    if isinstance(error, RecordNotFoundError):
        return 404
    if isinstance(error, ValidationError):
        return 400
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    await db.init_pool()
    logger.info("Database pool initialized")

    if DB_APPLY_SCHEMA:
        await create_schema(db)

    init_container(db)

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    await db.close_pool()
    logger.info("Database pool closed")


def create_api_application(use_lifespan: bool = True) -> FastAPI:
    """
    Create and configure FastAPI application

    Args:
        use_lifespan: Open the database pool on startup (disabled in tests
            that override the service container)
    """
    app = FastAPI(
        title="Care Tracker API",
        description="REST API for patient goal tracking and questionnaires",
        version=__version__,
        lifespan=lifespan if use_lifespan else None
    )

    # Setup middleware
    setup_cors(app)

    # Include routes
    app.include_router(router)

    @app.exception_handler(CareTrackerError)
    async def care_tracker_exception_handler(request: Request, exc: CareTrackerError):
        return JSONResponse(status_code=status_code_for(exc), content=exc.to_dict())

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    logger.info("FastAPI application created")

    return app
