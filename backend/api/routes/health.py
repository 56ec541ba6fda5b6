"""Liveness and database readiness endpoints."""

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.config import get_settings
from infrastructure.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()

DB_CHECK_TIMEOUT = 5.0


def _service_info() -> dict:
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "checkout_configured": bool(settings.stripe_secret_key),
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health")
async def health_check():
    """Report that the process is up."""
    return {"status": "healthy", **_service_info()}


@router.get("/health/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Report whether the database answers a trivial query."""
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=DB_CHECK_TIMEOUT)
        database = "connected"
    except TimeoutError:
        logger.error("Database health check timed out after %.0fs", DB_CHECK_TIMEOUT)
        database = "error: database timeout"
    except Exception as exc:
        # Details stay in the logs; the endpoint is public
        logger.error("Database health check failed: %s", type(exc).__name__)
        database = "error: database check failed"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        **_service_info(),
    }
