from __future__ import annotations

import asyncio

from fastapi import FastAPI

from backend.common.db import db_settings, dispose_engine
from backend.common.errors import PipelineError
from backend.common.logging_utils import configure_logging
from backend.insights_api.app.api import pipeline_error_handler, router as insights_router

logger = configure_logging(service_name="insights_api")

app = FastAPI(title="Transcript Insights API", version="0.1.0")
app.include_router(insights_router)
app.add_exception_handler(PipelineError, pipeline_error_handler)


def _run_upgrade() -> None:
    from alembic import command
    from alembic.config import Config

    # The working directory is /app, so alembic.ini is at /app/backend/alembic.ini
    alembic_cfg = Config("/app/backend/alembic.ini")
    alembic_cfg.attributes["configure_logger"] = False
    command.upgrade(alembic_cfg, "head")


@app.on_event("startup")
async def startup_event():
    """Run database migrations on startup if configured."""
    if db_settings.run_db_migrations:
        try:
            logger.info("Running database migrations...")
            # Alembic is synchronous; keep it off the event loop
            await asyncio.to_thread(_run_upgrade)
            logger.info("Database migrations completed successfully")
        except Exception as e:
            logger.error("Failed to run database migrations: %s", e, exc_info=True)


@app.on_event("shutdown")
async def shutdown_event():
    await dispose_engine()


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.get("/v1/health")
def v1_health_check():
    return {"status": "healthy"}
