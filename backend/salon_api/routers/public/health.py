"""
Health check endpoints for the REST API.
Provides basic and detailed health status of the service and its ledger store.
"""

import asyncio
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["health"])

DB_CHECK_TIMEOUT_SECONDS = 3.0


@router.get("/health")
def health_check():
    """
    Basic health check endpoint.
    Returns service status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": "salon-api",
        "environment": settings.environment,
    }


def _ping_database() -> str:
    with SessionLocal() as db:
        db.execute(text("SELECT 1"))
        return db.get_bind().dialect.name


async def check_database_health() -> dict:
    """Ledger store connectivity and latency. Never raises."""
    start = time.perf_counter()
    try:
        dialect = await asyncio.wait_for(
            asyncio.to_thread(_ping_database),
            timeout=DB_CHECK_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        error = f"timeout after {DB_CHECK_TIMEOUT_SECONDS}s"
    except SQLAlchemyError as exc:
        error = str(exc)
    else:
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        return {"status": "healthy", "latency_ms": latency_ms, "dialect": dialect}

    latency_ms = round((time.perf_counter() - start) * 1000, 2)
    logger.warning("Ledger store health check failed", error=error, latency_ms=latency_ms)
    return {"status": "unhealthy", "latency_ms": latency_ms, "error": error}


@router.get("/health/detailed")
async def detailed_health_check():
    """
    Detailed health check that verifies connectivity to the database.

    Returns 503 Service Unavailable if it is down.
    """
    database = await check_database_health()
    healthy = database["status"] == "healthy"

    checks = {
        "service": "salon-api",
        "environment": settings.environment,
        "status": "healthy" if healthy else "degraded",
        "dependencies": {"database": database},
    }

    if not healthy:
        return JSONResponse(content=checks, status_code=503)

    return checks
