"""Readiness response schemas (compliance matrix, overview, competence matrix, setup)."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ReadinessResponse(BaseModel):
    """Base for successful readiness payloads.

    ``debug`` is emitted as ``_debug`` and only when set.
    """

    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    debug: dict[str, Any] | None = Field(default=None, serialization_alias="_debug")

    def to_json(self) -> dict[str, Any]:
        exclude = {"debug"} if self.debug is None else None
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


# ── Compliance matrix ───────────────────────────────────────────────────


class ComplianceKpis(BaseModel):
    roster_employee_count: int = 0
    blocking_count: int = 0
    non_blocking_count: int = 0
    healthy_count: int = 0
    requirement_count: int = 0
    expired_count: int = 0
    expiring_count: int = 0


class RequirementImpact(BaseModel):
    requirement_id: str
    requirement_code: str
    requirement_name: str
    blocking_affected_employee_count: int
    expiring_affected_employee_count: int
    missing_affected_employee_count: int
    expired_affected_employee_count: int


class EmployeeLegalReadiness(BaseModel):
    employee_id: str
    employee_name: str
    blocking_items: list[str]
    expiring_items: list[str]
    status: str


class ExpiringItem(BaseModel):
    employee_id: str
    employee_name: str
    compliance_name: str
    valid_to: dt.date | None
    status: str


class ComplianceMatrixResponse(ReadinessResponse):
    readiness_flag: str
    kpis: ComplianceKpis
    by_requirement: list[RequirementImpact]
    has_more_requirements: bool = False
    by_employee: list[EmployeeLegalReadiness]
    has_more_employees: bool = False
    expiring_sample: list[ExpiringItem]


# ── Compliance overview ─────────────────────────────────────────────────


class OverviewBucket(BaseModel):
    employees: int = 0
    total_items: int = 0


class OverviewKpis(BaseModel):
    legal_stoppers: OverviewBucket
    expiring_soon: OverviewBucket
    healthy: OverviewBucket


class OverviewRow(BaseModel):
    employee_id: str
    employee_name: str
    employee_number: str
    line: str | None
    department: str | None
    site_id: str | None
    site_name: str
    compliance_id: str
    compliance_code: str
    compliance_name: str
    category: str
    status: str
    valid_to: dt.date | None
    days_left: int | None


class CatalogItem(BaseModel):
    id: str
    code: str
    name: str
    category: str


class ComplianceOverviewResponse(ReadinessResponse):
    kpis: OverviewKpis
    rows: list[OverviewRow]
    catalog: list[CatalogItem]
    active_site_id: str | None = None
    active_site_name: str | None = None


# ── Competence matrix ───────────────────────────────────────────────────


class CompetenceKpis(BaseModel):
    roster_employee_count: int = 0
    stations_total: int = 0
    stations_no_go: int = 0
    stations_warning: int = 0
    stations_go: int = 0


class GapReason(BaseModel):
    type: str
    skill_code: str
    required_level: int
    eligible_count: int


class StationReadiness(BaseModel):
    station_id: str
    station_code: str
    station_name: str
    line: str | None
    status: str
    required_skills_count: int
    eligible_employees_count: int
    gap_reasons: list[GapReason]


class StationGap(BaseModel):
    station_code: str
    missing_skills: list[str]


class EmployeeCompetence(BaseModel):
    employee_id: str
    employee_name: str
    eligible_stations_count: int
    blocked_stations_count: int
    top_gaps: list[StationGap]


class CompetenceMatrixResponse(ReadinessResponse):
    ops_readiness_flag: str
    kpis: CompetenceKpis
    by_station: list[StationReadiness]
    has_more_stations: bool = False
    by_employee: list[EmployeeCompetence]
    has_more_employees: bool = False


# ── Setup readiness ─────────────────────────────────────────────────────


class FoundationAxis(BaseModel):
    status: str
    score: int
    stations: int
    employees: int
    skills: int
    requirements: int
    ratings: int


class CoverageAxis(BaseModel):
    status: str
    score: int
    total_stations: int
    stations_with_requirements: int
    stations_with_eligible: int
    station_requirement_coverage_pct: int
    station_eligibility_coverage_pct: int


class ComplianceAxis(BaseModel):
    status: str
    score: int
    catalog_count: int
    total_employees: int
    valid_employees: int
    valid_percent: int
    legal_blockers: int


class OperationalAxis(BaseModel):
    status: str
    score: int
    gaps_generated: bool
    gaps_generated_count: int
    illegal_issues_count: int


class OverallReadiness(BaseModel):
    status: str
    score: int


class SetupReadinessBreakdown(BaseModel):
    foundation: FoundationAxis
    coverage: CoverageAxis
    compliance: ComplianceAxis
    operational: OperationalAxis
    overall: OverallReadiness


class SetupReadinessResponse(ReadinessResponse):
    date: dt.date
    shift_code: str | None = None
    readiness: SetupReadinessBreakdown
