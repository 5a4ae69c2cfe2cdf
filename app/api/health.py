from fastapi import APIRouter
from app.utils.cache import cache_service
from app.database import engine
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "/",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "healthy"}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the database (and Redis, when configured) is ready."
)
def readiness_check():
    """
    Readiness check for all dependencies.

    Returns status of:
    - Database connection
    - Redis connection (reported as "disabled" when caching is not configured)
    """
    checks = {"database": False}

    # Check database
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks["database"] = True
    except SQLAlchemyError as e:
        checks["database_error"] = str(e)

    # Redis only backs an optional cache, so it never makes the service unready
    checks["redis"] = cache_service.ping() if cache_service.enabled else "disabled"

    return {
        "status": "ready" if checks["database"] else "not_ready",
        "checks": checks
    }
