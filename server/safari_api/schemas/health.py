"""Health-related Pydantic schemas."""

from datetime import datetime
from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Overall service status reported by the ping endpoint."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"


class HealthResponse(BaseModel):
    """Ping response with per-dependency checks."""

    status: HealthStatus = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(..., description="Current server time (ISO 8601)")
    checks: Dict[str, str] = Field(default_factory=dict, description="Dependency name to 'ok' or 'error'")
