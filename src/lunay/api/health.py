"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and its dependencies are reachable. The database is required;
Redis only backs rate limiting, so its absence is reported but
doesn't make the service unhealthy.
"""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from lunay import __version__
from lunay.cache import redis_status
from lunay.db.engine import get_db

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.warning("health.database_unreachable", error=str(e))
        checks["database"] = "error"

    checks["redis"] = await redis_status()

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
