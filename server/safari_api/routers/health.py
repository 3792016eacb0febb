"""Health check router."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import utcnow
from ..core.dependencies import get_db
from ..core.observability import SERVICE_NAME
from ..schemas.health import HealthResponse, HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/health", tags=["health"])

DB_DEPENDENCY = Depends(get_db)


@router.post("/ping", response_model=HealthResponse)
async def health_ping(db: AsyncSession = DB_DEPENDENCY) -> JSONResponse:
    """
    Report service status along with a round trip to the entity store.

    A failing store degrades the status but still answers 200, so load
    balancers keep routing to the read-only endpoints.
    """
    checks = {"database": "ok"}
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database ping failed", extra={"error": str(e)})
        checks["database"] = "error"

    response_data = HealthResponse(
        status=HealthStatus.HEALTHY if checks["database"] == "ok" else HealthStatus.DEGRADED,
        service=SERVICE_NAME,
        version="1.0.0",
        timestamp=utcnow(),
        checks=checks,
    )

    logger.debug("Health ping", extra={"status": response_data.status.value})

    return JSONResponse(status_code=200, content=response_data.model_dump(mode="json"))
