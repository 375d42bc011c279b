"""
Health check endpoints.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fict.core.config import settings
from fict.infrastructure.database.base import get_db

router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": "fict-api",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@router.get("/health/ready")
async def readiness_check(
    db: AsyncSession = Depends(get_db),
) -> Dict[str, Any]:
    """
    Readiness check including the database.

    Returns:
        Readiness status with component health
    """
    components = {
        "api": "healthy",
        "database": "unknown",
    }

    try:
        result = await db.execute(text("SELECT 1"))
        result.scalar()
        components["database"] = "healthy"
    except SQLAlchemyError:
        components["database"] = "unhealthy"

    ready = all(state == "healthy" for state in components.values())
    return {
        "status": "ready" if ready else "not_ready",
        "components": components,
    }
