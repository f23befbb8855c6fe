"""Station skill coverage (operational readiness) for a roster.

Only mandatory requirements count (``is_mandatory`` is not False). An employee
is eligible for a station when every required skill is held at or above the
required level; a missing skill counts as level 0. A station with zero
eligible roster employees is OPS_NO_GO, otherwise OPS_GO. OPS_WARNING is
reserved for a station classifier that has more signal than eligibility
counts (see ``StationClassifier``); the default never produces it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from shiftgate.services.readiness.constants import (
    GAP_MISSING_SKILL,
    OPS_GO,
    OPS_NO_GO,
    OPS_SEVERITY,
    OPS_WARNING,
    TOP_GAPS_PER_EMPLOYEE,
)
from shiftgate.services.readiness.types import (
    EmployeeRecord,
    OpsStatus,
    RequirementSpec,
    SkillLevel,
    StationRecord,
    StationRequirementRow,
)


def mandatory_rows(rows: Iterable[StationRequirementRow]) -> list[StationRequirementRow]:
    """Keep rows whose is_mandatory is not explicitly False."""
    return [r for r in rows if r.is_mandatory is not False]


def build_station_requirements(
    rows: Iterable[StationRequirementRow],
    skill_code_by_id: dict[str, str],
) -> dict[str, list[RequirementSpec]]:
    """Per-station requirements, one per skill, keeping the max required_level."""
    by_station: dict[str, dict[str, int]] = {}
    for r in rows:
        if not r.station_id or not r.skill_id:
            continue
        level = r.required_level if isinstance(r.required_level, int) else 1
        levels = by_station.setdefault(r.station_id, {})
        current = levels.get(r.skill_id)
        if current is None or level > current:
            levels[r.skill_id] = level
    return {
        station_id: [
            RequirementSpec(
                skill_id=skill_id,
                skill_code=skill_code_by_id.get(skill_id, skill_id),
                required_level=required_level,
            )
            for skill_id, required_level in levels.items()
        ]
        for station_id, levels in by_station.items()
    }


def build_employee_levels(rows: Iterable[SkillLevel]) -> dict[str, dict[str, int]]:
    """employee_id → skill_id → level (max if multiple rows; NULL level is 0)."""
    by_employee: dict[str, dict[str, int]] = {}
    for r in rows:
        if not r.employee_id or not r.skill_id:
            continue
        level = r.level if isinstance(r.level, int) else 0
        skills = by_employee.setdefault(r.employee_id, {})
        existing = skills.get(r.skill_id)
        if existing is None or level > existing:
            skills[r.skill_id] = level
    return by_employee


def _meets(levels: dict[str, int] | None, req: RequirementSpec) -> bool:
    return (levels or {}).get(req.skill_id, 0) >= req.required_level


def missing_skills(
    levels: dict[str, int] | None, requirements: list[RequirementSpec]
) -> list[str]:
    """Skill codes of requirements the employee does not meet."""
    return [req.skill_code for req in requirements if not _meets(levels, req)]


@dataclass
class StationReadiness:
    station_id: str
    station_code: str
    station_name: str
    line: str | None
    status: OpsStatus
    required_skills_count: int
    eligible_employees_count: int
    gap_reasons: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "station_id": self.station_id,
            "station_code": self.station_code,
            "station_name": self.station_name,
            "line": self.line,
            "status": self.status,
            "required_skills_count": self.required_skills_count,
            "eligible_employees_count": self.eligible_employees_count,
            "gap_reasons": [dict(g) for g in self.gap_reasons],
        }


# (requirements, roster size, eligible count) → status
StationClassifier = Callable[[list[RequirementSpec], int, int], OpsStatus]


def default_station_classifier(
    requirements: list[RequirementSpec], roster_size: int, eligible_count: int
) -> OpsStatus:
    """Zero eligible → OPS_NO_GO; otherwise OPS_GO."""
    del requirements, roster_size
    return OPS_NO_GO if eligible_count == 0 else OPS_GO


def compute_station_readiness(
    station: StationRecord,
    requirements: list[RequirementSpec],
    roster_employee_ids: list[str],
    employee_levels: dict[str, dict[str, int]],
    classify: StationClassifier = default_station_classifier,
) -> StationReadiness:
    """Readiness of one station over the roster.

    With no requirements every roster employee is eligible.
    """
    code = station.code or station.id
    name = station.name or station.code or station.id

    if not requirements:
        eligible = len(roster_employee_ids)
        return StationReadiness(
            station_id=station.id,
            station_code=code,
            station_name=name,
            line=station.line,
            status=classify(requirements, len(roster_employee_ids), eligible),
            required_skills_count=0,
            eligible_employees_count=eligible,
        )

    eligible_count = sum(
        1
        for emp_id in roster_employee_ids
        if all(_meets(employee_levels.get(emp_id), req) for req in requirements)
    )

    gap_reasons: list[dict[str, Any]] = []
    for req in requirements:
        holders = sum(
            1 for emp_id in roster_employee_ids if _meets(employee_levels.get(emp_id), req)
        )
        if holders == 0:
            gap_reasons.append(
                {
                    "type": GAP_MISSING_SKILL,
                    "skill_code": req.skill_code,
                    "required_level": req.required_level,
                    "eligible_count": 0,
                }
            )

    return StationReadiness(
        station_id=station.id,
        station_code=code,
        station_name=name,
        line=station.line,
        status=classify(requirements, len(roster_employee_ids), eligible_count),
        required_skills_count=len(requirements),
        eligible_employees_count=eligible_count,
        gap_reasons=gap_reasons,
    )


def shift_ops_readiness_from_stations(statuses: Iterable[OpsStatus]) -> OpsStatus:
    """Any NO_GO → NO_GO; else any WARNING → WARNING; else GO."""
    statuses = list(statuses)
    if OPS_NO_GO in statuses:
        return OPS_NO_GO
    if OPS_WARNING in statuses:
        return OPS_WARNING
    return OPS_GO


def _station_sort_key(s: StationReadiness) -> tuple[int, int, str]:
    return (OPS_SEVERITY[s.status], s.eligible_employees_count, s.station_code or "")


@dataclass
class EmployeeCoverage:
    employee_id: str
    employee_name: str
    eligible_stations_count: int
    blocked_stations_count: int
    top_gaps: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "eligible_stations_count": self.eligible_stations_count,
            "blocked_stations_count": self.blocked_stations_count,
            "top_gaps": [dict(g) for g in self.top_gaps],
        }


@dataclass
class CoverageKpis:
    roster_employee_count: int = 0
    stations_total: int = 0
    stations_no_go: int = 0
    stations_warning: int = 0
    stations_go: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "roster_employee_count": self.roster_employee_count,
            "stations_total": self.stations_total,
            "stations_no_go": self.stations_no_go,
            "stations_warning": self.stations_warning,
            "stations_go": self.stations_go,
        }


@dataclass
class StationCoverageAggregate:
    """Full (untruncated) operational readiness for one roster."""

    ops_readiness_flag: OpsStatus
    kpis: CoverageKpis
    stations: list[StationReadiness]
    employees: list[EmployeeCoverage]

    @classmethod
    def empty(cls) -> StationCoverageAggregate:
        """Vacuous result for an empty roster."""
        return cls(ops_readiness_flag=OPS_GO, kpis=CoverageKpis(), stations=[], employees=[])


def _employee_coverage(
    employee: EmployeeRecord,
    stations: list[StationReadiness],
    station_requirements: dict[str, list[RequirementSpec]],
    employee_levels: dict[str, dict[str, int]],
) -> EmployeeCoverage:
    levels = employee_levels.get(employee.id)
    eligible = 0
    gaps: list[dict[str, Any]] = []
    for st in stations:
        missing = missing_skills(levels, station_requirements.get(st.station_id, []))
        if not missing:
            eligible += 1
        else:
            gaps.append({"station_code": st.station_code, "missing_skills": missing})
    return EmployeeCoverage(
        employee_id=employee.id,
        employee_name=employee.display_name,
        eligible_stations_count=eligible,
        blocked_stations_count=len(stations) - eligible,
        top_gaps=gaps[:TOP_GAPS_PER_EMPLOYEE],
    )


def aggregate_station_coverage(
    employees: list[EmployeeRecord],
    stations: list[StationRecord],
    station_requirements: dict[str, list[RequirementSpec]],
    employee_levels: dict[str, dict[str, int]],
    *,
    classify: StationClassifier = default_station_classifier,
) -> StationCoverageAggregate:
    """Station and per-employee coverage for the roster ``employees``.

    No stations → OPS_GO with every employee listed at zero counts.
    """
    roster = [e for e in employees if e.is_active]
    if not roster:
        return StationCoverageAggregate.empty()

    roster_ids = [e.id for e in roster]
    by_station = sorted(
        (
            compute_station_readiness(
                st,
                station_requirements.get(st.id, []),
                roster_ids,
                employee_levels,
                classify=classify,
            )
            for st in stations
        ),
        key=_station_sort_key,
    )
    statuses = [s.status for s in by_station]

    by_employee = [
        _employee_coverage(emp, by_station, station_requirements, employee_levels)
        for emp in roster
    ]
    by_employee.sort(key=lambda e: (-e.blocked_stations_count, e.employee_name or ""))

    kpis = CoverageKpis(
        roster_employee_count=len(roster),
        stations_total=len(by_station),
        stations_no_go=statuses.count(OPS_NO_GO),
        stations_warning=statuses.count(OPS_WARNING),
        stations_go=statuses.count(OPS_GO),
    )
    return StationCoverageAggregate(
        ops_readiness_flag=shift_ops_readiness_from_stations(statuses),
        kpis=kpis,
        stations=by_station,
        employees=by_employee,
    )
