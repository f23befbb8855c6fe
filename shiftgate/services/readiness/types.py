"""Boundary DTOs for the readiness engine.

Sources convert database rows into these once; aggregators only see these.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Literal

ComplianceStatus = Literal["valid", "expiring", "expired", "missing", "waived"]
LegalFlag = Literal["LEGAL_GO", "LEGAL_WARNING", "LEGAL_NO_GO"]
EmployeeLegalStatus = Literal["LEGAL_OK", "LEGAL_WARNING", "LEGAL_BLOCKED"]
OpsStatus = Literal["OPS_GO", "OPS_WARNING", "OPS_NO_GO"]
ReadinessStatus = Literal["GREEN", "AMBER", "RED"]


@dataclass(frozen=True)
class ShiftContext:
    """Scope of one evaluation: organization, optional site, shift date and code."""

    org_id: str
    site_id: str | None
    date: date
    shift_code: str


@dataclass(frozen=True)
class EmployeeRecord:
    id: str
    name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    employee_number: str | None = None
    line: str | None = None
    team: str | None = None
    site_id: str | None = None
    role: str | None = None
    is_active: bool = True

    @property
    def display_name(self) -> str:
        """Explicit name, else "first last", else employee number, else id."""
        if self.name and self.name.strip():
            return self.name
        full = " ".join(p for p in (self.first_name, self.last_name) if p).strip()
        if full:
            return full
        if self.employee_number:
            return self.employee_number
        return self.id


@dataclass(frozen=True)
class Requirement:
    """Compliance catalog item."""

    id: str
    code: str
    name: str
    category: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class ApplicabilityRule:
    compliance_id: str
    applies_to_line: str | None = None
    applies_to_role: str | None = None
    applies_globally: bool = False


@dataclass(frozen=True)
class ComplianceRecord:
    employee_id: str
    compliance_id: str
    valid_to: date | None = None
    waived: bool = False


@dataclass(frozen=True)
class StationRecord:
    id: str
    code: str | None = None
    name: str | None = None
    line: str | None = None


@dataclass(frozen=True)
class StationRequirementRow:
    """Raw station skill requirement; is_mandatory None counts as mandatory."""

    station_id: str
    skill_id: str
    required_level: int = 1
    is_mandatory: bool | None = None


@dataclass(frozen=True)
class SkillLevel:
    employee_id: str
    skill_id: str
    level: int | None = None


@dataclass(frozen=True)
class RequirementSpec:
    """Deduplicated mandatory skill requirement of a station."""

    skill_id: str
    skill_code: str
    required_level: int
