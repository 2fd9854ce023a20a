"""Pydantic schemas for service health responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(..., description="Always 'ok' while the process is serving.")
    timestamp: str = Field(..., description="Current server time (ISO-8601, UTC).")
    service: str = Field(..., description="Service name.")
    cache: str = Field(
        ...,
        description="Key-value backend status: 'ok' or 'unavailable'.",
    )
