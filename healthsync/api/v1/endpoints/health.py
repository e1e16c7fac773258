"""
Simple health check endpoint.
"""
from typing import Any, Dict

from fastapi import APIRouter
from sqlmodel import text

from healthsync.api.dependencies import DbSession
from healthsync.core.config import settings
from healthsync.core.logging_config import log_warning
from healthsync.core.time_utils import utc_now

router = APIRouter(tags=["health"])


@router.get("/health", response_model=Dict[str, Any])
async def health_check(session: DbSession):
    """
    Health check with database status.

    Returns degraded status if the database is unreachable but the service is running.
    """
    db_status = "connected"
    try:
        session.exec(text("SELECT 1")).first()
    except Exception as e:
        log_warning(f"Health check database check failed: {e}")
        db_status = f"disconnected: {str(e)}"

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "timestamp": utc_now().isoformat(),
        "service": settings.app_name,
        "version": settings.app_version,
        "database": db_status,
    }
