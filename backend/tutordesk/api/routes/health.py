import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from tutordesk.db.base import get_session_factory
from tutordesk.db.redis import get_redis

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Liveness probe; 503 while draining after SIGTERM."""
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(
            status_code=503,
            content={"status": "shutting_down", "service": "tutordesk-backend"},
        )
    return {"status": "healthy", "service": "tutordesk-backend"}


@router.get("/ready")
async def readiness_check():
    """Readiness check - verifies database and Redis are reachable."""
    checks = {"database": False, "redis": False}

    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = True
    except (RuntimeError, SQLAlchemyError, OSError) as e:
        logger.error("readiness_database_failed", error=str(e))

    try:
        await get_redis().ping()
        checks["redis"] = True
    except (RuntimeError, RedisError, OSError) as e:
        logger.error("readiness_redis_failed", error=str(e))

    all_healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if all_healthy else 503,
        content={"status": "ready" if all_healthy else "degraded", "checks": checks},
    )
