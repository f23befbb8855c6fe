"""Data sources for the readiness pipelines.

Each source is a Protocol plus a SQLAlchemy implementation reading through one
request-scoped Session. Rows are converted to the DTOs in ``types`` here and
nowhere else. A failed read raises UpstreamDataError carrying the step name;
nothing is retried.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shiftgate.models import (
    ComplianceApplicability,
    ComplianceCatalog,
    Employee,
    EmployeeCompliance,
    EmployeeRole,
    EmployeeSkill,
    MachineDemand,
    Role,
    Shift,
    ShiftAssignment,
    Site,
    Skill,
    Station,
    StationSkillRequirement,
)
from shiftgate.services.readiness.errors import UpstreamDataError
from shiftgate.services.readiness.types import (
    ApplicabilityRule,
    ComplianceRecord,
    EmployeeRecord,
    Requirement,
    SkillLevel,
    StationRecord,
    StationRequirementRow,
)

logger = logging.getLogger(__name__)


# ── Protocols ───────────────────────────────────────────────────────────


class RosterResolver(Protocol):
    def resolve(
        self,
        org_id: str,
        site_id: str | None,
        shift_date: date,
        shift_code: str,
        station_id: str | None = None,
    ) -> list[str]:
        """Employee ids rostered on the shift (optionally on one station)."""
        ...

    def station_rosters(
        self,
        org_id: str,
        site_id: str | None,
        shift_date: date,
        shift_code: str | None = None,
    ) -> dict[tuple[str, str], list[str]]:
        """(station_id, shift_code) → rostered employee ids for the date."""
        ...


class EmployeeSource(Protocol):
    def active_employees(
        self, org_id: str, site_id: str | None, ids: list[str] | None = None
    ) -> list[EmployeeRecord]: ...


class CatalogSource(Protocol):
    def active_requirements(
        self, org_id: str, category: str | None = None
    ) -> list[Requirement]: ...

    def applicability_rules(self, org_id: str) -> list[ApplicabilityRule]: ...


class ComplianceRecordSource(Protocol):
    def for_employees(self, org_id: str, employee_ids: list[str]) -> list[ComplianceRecord]: ...


class StationSource(Protocol):
    def active_stations(self, org_id: str) -> list[StationRecord]: ...

    def requirements(
        self, org_id: str, station_ids: list[str]
    ) -> list[StationRequirementRow]: ...


class SkillSource(Protocol):
    def skill_codes(self, org_id: str, skill_ids: list[str]) -> dict[str, str]: ...

    def employee_levels(
        self, employee_ids: list[str], skill_ids: list[str]
    ) -> list[SkillLevel]: ...


class SetupSource(Protocol):
    def foundation_counts(self, org_id: str, site_id: str | None) -> dict[str, int]:
        """Row counts for stations, employees, skills, requirements, ratings."""
        ...

    def demand_count(
        self, org_id: str, plan_date: date, shift_code: str | None = None
    ) -> int: ...


class SiteSource(Protocol):
    def site_name(self, org_id: str, site_id: str) -> str | None: ...

    def site_names(self, org_id: str) -> dict[str, str]: ...


# ── SQLAlchemy implementations ──────────────────────────────────────────


@contextmanager
def _reading(step: str, what: str) -> Iterator[None]:
    """Turn database and row-shape failures into UpstreamDataError(step).

    Caller ids are converted before entering, so a TypeError or ValueError
    raised inside comes from a row.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.warning("Readiness read failed at step=%s: %s", step, exc)
        raise UpstreamDataError(step, f"Failed to load {what}") from exc
    except (TypeError, ValueError) as exc:
        logger.warning("Malformed row at step=%s: %s", step, exc)
        raise UpstreamDataError(step, f"Malformed {what} row") from exc


def _uuid(value: str) -> uuid.UUID:
    """Caller-supplied id → UUID; ValueError on malformed input."""
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))


def _uuids(values: Iterable[str]) -> list[uuid.UUID]:
    return [_uuid(v) for v in values]


def _str(value: uuid.UUID | None) -> str | None:
    return str(value) if value is not None else None


class SqlRosterResolver:
    """Roster from shift_assignments on shifts matching (date, shift_code).

    With a site, shifts on that site and shifts without a site both count.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _assignments(self, org: uuid.UUID, site: uuid.UUID | None, shift_date: date):
        q = (
            self.db.query(ShiftAssignment)
            .join(Shift, Shift.id == ShiftAssignment.shift_id)
            .filter(
                Shift.org_id == org,
                Shift.shift_date == shift_date,
                ShiftAssignment.employee_id.isnot(None),
            )
        )
        if site is not None:
            q = q.filter(or_(Shift.site_id == site, Shift.site_id.is_(None)))
        return q

    def resolve(
        self,
        org_id: str,
        site_id: str | None,
        shift_date: date,
        shift_code: str,
        station_id: str | None = None,
    ) -> list[str]:
        org = _uuid(org_id)
        site = _uuid(site_id) if site_id else None
        station = _uuid(station_id) if station_id else None
        with _reading("roster", "roster"):
            q = (
                self._assignments(org, site, shift_date)
                .filter(Shift.shift_code == shift_code)
                .with_entities(ShiftAssignment.employee_id)
            )
            if station is not None:
                q = q.filter(ShiftAssignment.station_id == station)
            return sorted(str(employee_id) for (employee_id,) in q.distinct().all())

    def station_rosters(
        self,
        org_id: str,
        site_id: str | None,
        shift_date: date,
        shift_code: str | None = None,
    ) -> dict[tuple[str, str], list[str]]:
        org = _uuid(org_id)
        site = _uuid(site_id) if site_id else None
        with _reading("station_rosters", "station rosters"):
            q = self._assignments(org, site, shift_date).with_entities(
                ShiftAssignment.station_id, Shift.shift_code, ShiftAssignment.employee_id
            )
            if shift_code:
                q = q.filter(Shift.shift_code == shift_code)
            rosters: dict[tuple[str, str], set[str]] = {}
            for station_id, code, employee_id in q.distinct().all():
                rosters.setdefault((str(station_id), code), set()).add(str(employee_id))
        return {key: sorted(ids) for key, ids in rosters.items()}


class SqlEmployeeSource:
    def __init__(self, db: Session) -> None:
        self.db = db

    def active_employees(
        self, org_id: str, site_id: str | None, ids: list[str] | None = None
    ) -> list[EmployeeRecord]:
        """Active employees of the org (and site), with their primary role code.

        ``ids`` None means every employee in scope; an empty list reads nothing.
        """
        if ids is not None and not ids:
            return []
        org = _uuid(org_id)
        site = _uuid(site_id) if site_id else None
        wanted = _uuids(ids) if ids is not None else None
        with _reading("employees", "employees"):
            q = self.db.query(Employee).filter(
                Employee.org_id == org, Employee.is_active.is_(True)
            )
            if site is not None:
                q = q.filter(or_(Employee.site_id == site, Employee.site_id.is_(None)))
            if wanted is not None:
                q = q.filter(Employee.id.in_(wanted))
            employees = q.all()
        if not employees:
            return []

        with _reading("employee_roles", "primary roles"):
            role_rows = (
                self.db.query(EmployeeRole.employee_id, Role.code)
                .join(Role, Role.id == EmployeeRole.role_id)
                .filter(
                    EmployeeRole.org_id == org,
                    EmployeeRole.is_primary.is_(True),
                    EmployeeRole.employee_id.in_([e.id for e in employees]),
                )
                .all()
            )
            role_by_employee = {str(emp_id): code for emp_id, code in role_rows}

        with _reading("employees", "employees"):
            return [
                EmployeeRecord(
                    id=str(e.id),
                    name=e.name,
                    first_name=e.first_name,
                    last_name=e.last_name,
                    employee_number=e.employee_number,
                    line=e.line,
                    team=e.team,
                    site_id=_str(e.site_id),
                    role=role_by_employee.get(str(e.id)),
                    is_active=bool(e.is_active),
                )
                for e in employees
            ]


class SqlCatalogSource:
    def __init__(self, db: Session) -> None:
        self.db = db

    def active_requirements(self, org_id: str, category: str | None = None) -> list[Requirement]:
        org = _uuid(org_id)
        with _reading("catalog", "compliance catalog"):
            q = self.db.query(ComplianceCatalog).filter(
                ComplianceCatalog.org_id == org,
                ComplianceCatalog.is_active.is_(True),
            )
            if category:
                q = q.filter(ComplianceCatalog.category == category)
            return [
                Requirement(
                    id=str(r.id),
                    code=r.code,
                    name=r.name,
                    category=r.category or "",
                    is_active=bool(r.is_active),
                )
                for r in q.all()
            ]

    def applicability_rules(self, org_id: str) -> list[ApplicabilityRule]:
        org = _uuid(org_id)
        with _reading("applicability", "applicability rules"):
            rows = (
                self.db.query(ComplianceApplicability)
                .filter(ComplianceApplicability.org_id == org)
                .all()
            )
            return [
                ApplicabilityRule(
                    compliance_id=str(r.compliance_id),
                    applies_to_line=r.applies_to_line,
                    applies_to_role=r.applies_to_role,
                    applies_globally=bool(r.applies_globally),
                )
                for r in rows
            ]


class SqlComplianceRecordSource:
    def __init__(self, db: Session) -> None:
        self.db = db

    def for_employees(self, org_id: str, employee_ids: list[str]) -> list[ComplianceRecord]:
        if not employee_ids:
            return []
        org = _uuid(org_id)
        wanted = _uuids(employee_ids)
        with _reading("employee_compliance", "employee compliance"):
            rows = (
                self.db.query(EmployeeCompliance)
                .filter(
                    EmployeeCompliance.org_id == org,
                    EmployeeCompliance.employee_id.in_(wanted),
                )
                .all()
            )
            return [
                ComplianceRecord(
                    employee_id=str(r.employee_id),
                    compliance_id=str(r.compliance_id),
                    valid_to=r.valid_to,
                    waived=bool(r.waived),
                )
                for r in rows
            ]


class SqlStationSource:
    def __init__(self, db: Session) -> None:
        self.db = db

    def active_stations(self, org_id: str) -> list[StationRecord]:
        org = _uuid(org_id)
        with _reading("stations", "stations"):
            rows = (
                self.db.query(Station)
                .filter(Station.org_id == org, Station.is_active.is_(True))
                .all()
            )
            return [
                StationRecord(id=str(s.id), code=s.code, name=s.name, line=s.line) for s in rows
            ]

    def requirements(self, org_id: str, station_ids: list[str]) -> list[StationRequirementRow]:
        if not station_ids:
            return []
        org = _uuid(org_id)
        wanted = _uuids(station_ids)
        with _reading("station_skill_requirements", "station skill requirements"):
            rows = (
                self.db.query(StationSkillRequirement)
                .filter(
                    StationSkillRequirement.org_id == org,
                    StationSkillRequirement.station_id.in_(wanted),
                )
                .all()
            )
            return [
                StationRequirementRow(
                    station_id=str(r.station_id),
                    skill_id=str(r.skill_id),
                    required_level=r.required_level,
                    is_mandatory=r.is_mandatory,
                )
                for r in rows
            ]


class SqlSkillSource:
    def __init__(self, db: Session) -> None:
        self.db = db

    def skill_codes(self, org_id: str, skill_ids: list[str]) -> dict[str, str]:
        """skill_id → code, for skills that have a code."""
        if not skill_ids:
            return {}
        org = _uuid(org_id)
        wanted = _uuids(skill_ids)
        with _reading("skills", "skills"):
            rows = (
                self.db.query(Skill.id, Skill.code)
                .filter(Skill.org_id == org, Skill.id.in_(wanted))
                .all()
            )
            return {str(skill_id): code for skill_id, code in rows if code}

    def employee_levels(self, employee_ids: list[str], skill_ids: list[str]) -> list[SkillLevel]:
        if not employee_ids or not skill_ids:
            return []
        employees = _uuids(employee_ids)
        skills = _uuids(skill_ids)
        with _reading("employee_skills", "employee skills"):
            rows = (
                self.db.query(EmployeeSkill.employee_id, EmployeeSkill.skill_id, EmployeeSkill.level)
                .filter(
                    EmployeeSkill.employee_id.in_(employees),
                    EmployeeSkill.skill_id.in_(skills),
                )
                .all()
            )
            return [
                SkillLevel(employee_id=str(emp_id), skill_id=str(skill_id), level=level)
                for emp_id, skill_id, level in rows
            ]


class SqlSetupSource:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _count(self, column, *criteria) -> int:
        return int(self.db.query(func.count(column)).filter(*criteria).scalar() or 0)

    def foundation_counts(self, org_id: str, site_id: str | None) -> dict[str, int]:
        org = _uuid(org_id)
        employee_filters = [Employee.org_id == org, Employee.is_active.is_(True)]
        if site_id:
            site = _uuid(site_id)
            employee_filters.append(or_(Employee.site_id == site, Employee.site_id.is_(None)))
        with _reading("setup_counts", "setup counts"):
            return {
                "stations": self._count(
                    Station.id, Station.org_id == org, Station.is_active.is_(True)
                ),
                "employees": self._count(Employee.id, *employee_filters),
                "skills": self._count(Skill.id, Skill.org_id == org),
                "requirements": self._count(
                    StationSkillRequirement.id, StationSkillRequirement.org_id == org
                ),
                "ratings": self._count(EmployeeSkill.id, EmployeeSkill.org_id == org),
            }

    def demand_count(self, org_id: str, plan_date: date, shift_code: str | None = None) -> int:
        criteria = [MachineDemand.org_id == _uuid(org_id), MachineDemand.plan_date == plan_date]
        if shift_code:
            criteria.append(MachineDemand.shift_code == shift_code)
        with _reading("machine_demand", "demand rows"):
            return self._count(MachineDemand.id, *criteria)


class SqlSiteSource:
    def __init__(self, db: Session) -> None:
        self.db = db

    def site_name(self, org_id: str, site_id: str) -> str | None:
        org, site = _uuid(org_id), _uuid(site_id)
        with _reading("sites", "site"):
            row = self.db.query(Site.name).filter(Site.org_id == org, Site.id == site).first()
        return row[0] if row else None

    def site_names(self, org_id: str) -> dict[str, str]:
        org = _uuid(org_id)
        with _reading("sites", "sites"):
            rows = self.db.query(Site.id, Site.name).filter(Site.org_id == org).all()
            return {str(site_id): name for site_id, name in rows}


@dataclass
class ReadinessSources:
    """Every source one readiness computation needs."""

    roster: RosterResolver
    employees: EmployeeSource
    catalog: CatalogSource
    records: ComplianceRecordSource
    stations: StationSource
    skills: SkillSource
    setup: SetupSource
    sites: SiteSource

    @classmethod
    def from_session(cls, db: Session) -> ReadinessSources:
        return cls(
            roster=SqlRosterResolver(db),
            employees=SqlEmployeeSource(db),
            catalog=SqlCatalogSource(db),
            records=SqlComplianceRecordSource(db),
            stations=SqlStationSource(db),
            skills=SqlSkillSource(db),
            setup=SqlSetupSource(db),
            sites=SqlSiteSource(db),
        )
