#!/usr/bin/env python3
"""Paper Intake - registration API server"""

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from paper_intake import __version__
from paper_intake.config import config
from paper_intake.logging_config import get_logger, setup_logging
from paper_intake.models.database import create_db_engine
from paper_intake.routers.error_handlers import register_exception_handlers
from paper_intake.routers.health import health
from paper_intake.routers.registration import router as registration_router
from paper_intake.services.migration_manager import MigrationManager
from paper_intake.services.registration_store import RegistrationStore

# Configure logging (INFO -> stdout, WARNING/ERROR -> stderr)
setup_logging()
logger = get_logger(__name__)

API_V1_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Bring the store up to the latest schema before serving any request.

    A MigrationFailure propagates out of startup, so the server never
    accepts traffic against a store of unknown shape.
    """
    owns_engine = app.state.engine is None
    engine = app.state.engine or create_db_engine()
    app.state.engine = engine

    try:
        MigrationManager(engine).ensure_latest_schema()
        app.state.store = RegistrationStore(engine)
        logger.info("Database initialization completed")
        yield
    finally:
        if owns_engine:
            engine.dispose()
            app.state.engine = None
            logger.info("Database connection closed")


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the application.

    Args:
        engine: Engine to use instead of one built from ``DATABASE_URL``

    Returns:
        FastAPI app; the store is created in its lifespan
    """
    app = FastAPI(
        title="Paper Intake",
        description="Register completed paper forms and look them up by id",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api-docs",
        redoc_url=None,
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health)
    app.include_router(registration_router)

    # Versioned aliases kept for clients of the /api/v1 paths
    app.include_router(health, prefix=API_V1_PREFIX, include_in_schema=False)
    app.include_router(
        registration_router, prefix=API_V1_PREFIX, include_in_schema=False
    )

    @app.get("/", include_in_schema=False)
    async def root():
        return {"message": "Welcome to the Paper Intake API"}

    return app


app = create_app()


def run():
    """Serve the app with uvicorn on the configured port"""
    level = setup_logging(config["log_level"])
    port = config["port"]
    logger.info(f"Starting Paper Intake on 0.0.0.0:{port}")
    logger.info(f"API documentation available at http://localhost:{port}/api-docs")

    try:
        uvicorn.run(app, host="0.0.0.0", port=port, log_level=level, log_config=None)
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise


if __name__ == "__main__":
    run()
