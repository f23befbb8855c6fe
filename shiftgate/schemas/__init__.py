"""Pydantic schemas for API responses."""

from shiftgate.schemas.readiness import (
    ComplianceMatrixResponse,
    ComplianceOverviewResponse,
    CompetenceMatrixResponse,
    ReadinessResponse,
    SetupReadinessResponse,
)

__all__ = [
    "ComplianceMatrixResponse",
    "ComplianceOverviewResponse",
    "CompetenceMatrixResponse",
    "ReadinessResponse",
    "SetupReadinessResponse",
]
