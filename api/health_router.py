"""
Health Router.

Public, unauthenticated endpoints for uptime probes.

Endpoints Provided:
- `/health`: liveness. Answers without touching the database.
- `/health/detailed`: readiness. Runs a trivial query against the database and
  reports `degraded` when it fails.
- `/api`: welcome banner with the API version.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text

from core.database import describe_database, get_session_factory
from core.logging_config import get_logger

logger = get_logger(__name__)

API_VERSION = "1.0.0"

health_router = APIRouter(tags=["Health"])


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@health_router.get("/health")
async def health_check() -> Dict[str, Any]:
    """Basic health check endpoint (no authentication required)"""
    logger.debug("Health check requested")
    return {"status": "ok", "timestamp": _timestamp()}


@health_router.get("/health/detailed")
async def detailed_health_check(
    request: Request,
    session_factory=Depends(get_session_factory),
) -> Dict[str, Any]:
    """Health check including a database round trip"""
    health_status = {
        "status": "ok",
        "timestamp": _timestamp(),
        "version": API_VERSION,
        "components": {},
    }

    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
        health_status["components"]["database"] = {
            "status": "ok",
            "url": describe_database(request.app.state.settings.database_url),
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        health_status["components"]["database"] = {
            "status": "unavailable",
            "error": type(e).__name__,
        }
        health_status["status"] = "degraded"

    return health_status


@health_router.get("/api")
async def api_root() -> Dict[str, str]:
    return {"message": "Welcome to Portfolio API", "version": API_VERSION}
