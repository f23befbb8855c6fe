"""Roster-scoped compliance aggregation (legal readiness).

Joins roster employees × applicable requirements × employee compliance
records into status rows, then rolls them up per requirement, per employee
and into one shift-level readiness flag:

- LEGAL_NO_GO if any missing/expired item exists on the roster,
- LEGAL_WARNING if none blocks but something is expiring,
- LEGAL_GO otherwise (including an empty roster).

Lists are sorted most severe first and truncated after sorting.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, TypeVar

from shiftgate.services.readiness.applicability import applies_to
from shiftgate.services.readiness.constants import (
    BLOCKING_STATUSES,
    EMPLOYEE_LEGAL_SEVERITY,
    EXPIRING_SAMPLE_SIZE,
    EXPIRY_HORIZON_DAYS,
    LEGAL_BLOCKED,
    LEGAL_GO,
    LEGAL_NO_GO,
    LEGAL_OK,
    LEGAL_WARNING,
    STATUS_EXPIRED,
    STATUS_EXPIRING,
    STATUS_MISSING,
    WARNING_STATUSES,
)
from shiftgate.services.readiness.status_engine import compute_status, days_left
from shiftgate.services.readiness.types import (
    ApplicabilityRule,
    ComplianceRecord,
    ComplianceStatus,
    EmployeeLegalStatus,
    EmployeeRecord,
    LegalFlag,
    Requirement,
)

T = TypeVar("T")


def top_n(items: list[T], limit: int) -> tuple[list[T], bool]:
    """Return the first ``limit`` items and whether more were dropped."""
    limit = max(0, limit)
    return items[:limit], len(items) > limit


@dataclass(frozen=True)
class StatusRow:
    """Status of one (employee, requirement) pair."""

    employee_id: str
    requirement_id: str
    requirement_code: str
    requirement_name: str
    status: ComplianceStatus
    valid_to: date | None
    days_left: int | None


@dataclass
class RequirementRollup:
    """Employees affected by one requirement, by status bucket (sets dedupe by employee)."""

    requirement_id: str
    requirement_code: str
    requirement_name: str
    missing: set[str] = field(default_factory=set)
    expired: set[str] = field(default_factory=set)
    expiring: set[str] = field(default_factory=set)

    @property
    def blocking_affected_employee_count(self) -> int:
        return len(self.missing | self.expired)

    @property
    def expiring_affected_employee_count(self) -> int:
        return len(self.expiring)

    def to_dict(self) -> dict[str, Any]:
        return {
            "requirement_id": self.requirement_id,
            "requirement_code": self.requirement_code,
            "requirement_name": self.requirement_name,
            "blocking_affected_employee_count": self.blocking_affected_employee_count,
            "expiring_affected_employee_count": self.expiring_affected_employee_count,
            "missing_affected_employee_count": len(self.missing),
            "expired_affected_employee_count": len(self.expired),
        }


@dataclass
class EmployeeRollup:
    """Blocking and expiring requirement codes for one employee."""

    employee_id: str
    employee_name: str
    blocking_items: list[str] = field(default_factory=list)
    expiring_items: list[str] = field(default_factory=list)

    @property
    def status(self) -> EmployeeLegalStatus:
        if self.blocking_items:
            return LEGAL_BLOCKED
        if self.expiring_items:
            return LEGAL_WARNING
        return LEGAL_OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "blocking_items": list(self.blocking_items),
            "expiring_items": list(self.expiring_items),
            "status": self.status,
        }


@dataclass
class ComplianceKpis:
    roster_employee_count: int = 0
    blocking_count: int = 0
    non_blocking_count: int = 0
    healthy_count: int = 0
    requirement_count: int = 0
    expired_count: int = 0
    expiring_count: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class ComplianceAggregate:
    """Full (untruncated) result of one compliance aggregation."""

    readiness_flag: LegalFlag
    kpis: ComplianceKpis
    requirements: list[RequirementRollup]
    employees: list[EmployeeRollup]
    rows: list[StatusRow]
    expiring_sample: list[dict[str, Any]]

    @classmethod
    def empty(cls) -> ComplianceAggregate:
        """Vacuous result: nobody rostered, nothing can block."""
        return cls(
            readiness_flag=LEGAL_GO,
            kpis=ComplianceKpis(),
            requirements=[],
            employees=[],
            rows=[],
            expiring_sample=[],
        )

    def employee_status_by_id(self) -> dict[str, EmployeeLegalStatus]:
        return {e.employee_id: e.status for e in self.employees}


def iter_applicable_statuses(
    employees: Iterable[EmployeeRecord],
    catalog: Iterable[Requirement],
    records: Iterable[ComplianceRecord],
    rules_by_requirement: dict[str, list[ApplicabilityRule]],
    *,
    as_of: date | None = None,
    horizon_days: int = EXPIRY_HORIZON_DAYS,
    treat_empty_rule_as_wildcard: bool = True,
) -> Iterator[tuple[EmployeeRecord, Requirement, StatusRow]]:
    """Yield (employee, requirement, status row) for every applicable active pair.

    Pairs without a record are ``missing``. Inactive employees and
    requirements are skipped.
    """
    today = as_of or date.today()
    record_by_pair: dict[tuple[str, str], ComplianceRecord] = {
        (r.employee_id, r.compliance_id): r for r in records
    }
    active_catalog = [c for c in catalog if c.is_active]
    for emp in employees:
        if not emp.is_active:
            continue
        for req in active_catalog:
            if not applies_to(
                emp,
                rules_by_requirement.get(req.id),
                treat_empty_rule_as_wildcard=treat_empty_rule_as_wildcard,
            ):
                continue
            rec = record_by_pair.get((emp.id, req.id))
            valid_to = rec.valid_to if rec else None
            status = (
                compute_status(valid_to, rec.waived, as_of=today, horizon_days=horizon_days)
                if rec
                else STATUS_MISSING
            )
            yield emp, req, StatusRow(
                employee_id=emp.id,
                requirement_id=req.id,
                requirement_code=req.code,
                requirement_name=req.name,
                status=status,
                valid_to=valid_to,
                days_left=days_left(valid_to, as_of=today),
            )


def _requirement_sort_key(r: RequirementRollup) -> tuple[int, str]:
    affected = r.blocking_affected_employee_count + r.expiring_affected_employee_count
    return (-affected, r.requirement_code or "")


def _employee_sort_key(e: EmployeeRollup) -> tuple[int, str]:
    return (EMPLOYEE_LEGAL_SEVERITY[e.status], e.employee_name or "")


def _expiring_sample(
    rows: list[StatusRow], names: dict[str, str], size: int
) -> list[dict[str, Any]]:
    flagged = [r for r in rows if r.status in (STATUS_EXPIRED, STATUS_EXPIRING)]
    flagged.sort(
        key=lambda r: (
            0 if r.status == STATUS_EXPIRED else 1,
            r.valid_to is None,
            r.valid_to.isoformat() if r.valid_to else "",
        )
    )
    return [
        {
            "employee_id": r.employee_id,
            "employee_name": names.get(r.employee_id, r.employee_id),
            "compliance_name": r.requirement_name,
            "valid_to": r.valid_to,
            "status": r.status,
        }
        for r in flagged[: max(0, size)]
    ]


def aggregate_compliance(
    employees: list[EmployeeRecord],
    catalog: list[Requirement],
    records: list[ComplianceRecord],
    rules_by_requirement: dict[str, list[ApplicabilityRule]],
    *,
    as_of: date | None = None,
    horizon_days: int = EXPIRY_HORIZON_DAYS,
    treat_empty_rule_as_wildcard: bool = True,
    expiring_sample_size: int = EXPIRING_SAMPLE_SIZE,
) -> ComplianceAggregate:
    """Aggregate roster compliance into the legal readiness structures.

    ``employees`` should already be restricted to the roster. Every active
    employee gets an EmployeeRollup, even when no requirement applies.
    Records are assumed unique per (employee, requirement); on duplicates the
    last one wins.
    """
    active_employees = [e for e in employees if e.is_active]
    requirement_count = sum(1 for c in catalog if c.is_active)
    if not active_employees:
        aggregate = ComplianceAggregate.empty()
        aggregate.kpis.requirement_count = requirement_count
        return aggregate

    kpis = ComplianceKpis(
        roster_employee_count=len(active_employees),
        requirement_count=requirement_count,
    )
    by_requirement: dict[str, RequirementRollup] = {}
    by_employee: dict[str, EmployeeRollup] = {
        e.id: EmployeeRollup(employee_id=e.id, employee_name=e.display_name)
        for e in active_employees
    }
    rows: list[StatusRow] = []

    for emp, req, row in iter_applicable_statuses(
        active_employees,
        catalog,
        records,
        rules_by_requirement,
        as_of=as_of,
        horizon_days=horizon_days,
        treat_empty_rule_as_wildcard=treat_empty_rule_as_wildcard,
    ):
        rows.append(row)
        emp_rec = by_employee[emp.id]
        req_rec = by_requirement.get(req.id)
        if req_rec is None:
            req_rec = RequirementRollup(
                requirement_id=req.id, requirement_code=req.code, requirement_name=req.name
            )
            by_requirement[req.id] = req_rec

        if row.status in BLOCKING_STATUSES:
            kpis.blocking_count += 1
            emp_rec.blocking_items.append(req.code)
            if row.status == STATUS_EXPIRED:
                kpis.expired_count += 1
                req_rec.expired.add(emp.id)
            else:
                req_rec.missing.add(emp.id)
        elif row.status in WARNING_STATUSES:
            kpis.non_blocking_count += 1
            kpis.expiring_count += 1
            emp_rec.expiring_items.append(req.code)
            req_rec.expiring.add(emp.id)
        else:
            kpis.healthy_count += 1

    if kpis.blocking_count > 0:
        flag: LegalFlag = LEGAL_NO_GO
    elif kpis.non_blocking_count > 0:
        flag = LEGAL_WARNING
    else:
        flag = LEGAL_GO

    names = {e.id: e.display_name for e in active_employees}
    return ComplianceAggregate(
        readiness_flag=flag,
        kpis=kpis,
        requirements=sorted(by_requirement.values(), key=_requirement_sort_key),
        employees=sorted(by_employee.values(), key=_employee_sort_key),
        rows=rows,
        expiring_sample=_expiring_sample(rows, names, expiring_sample_size),
    )


# ── Overview table ──────────────────────────────────────────────────────


@dataclass
class ComplianceOverview:
    """Flat (employee, requirement) table with legal-stopper / expiring / healthy KPIs."""

    kpis: dict[str, dict[str, int]]
    rows: list[dict[str, Any]]

    @classmethod
    def empty(cls) -> ComplianceOverview:
        return cls(kpis=_overview_kpis(set(), 0, set(), 0, set(), 0), rows=[])


def _overview_kpis(
    stop_emps: set[str],
    stop_items: int,
    exp_emps: set[str],
    exp_items: int,
    ok_emps: set[str],
    ok_items: int,
) -> dict[str, dict[str, int]]:
    return {
        "legal_stoppers": {"employees": len(stop_emps), "total_items": stop_items},
        "expiring_soon": {"employees": len(exp_emps), "total_items": exp_items},
        "healthy": {"employees": len(ok_emps), "total_items": ok_items},
    }


def _matches_search(emp: EmployeeRecord, needle: str) -> bool:
    return needle in emp.display_name.lower() or needle in (emp.employee_number or "").lower()


def build_compliance_overview(
    employees: list[EmployeeRecord],
    catalog: list[Requirement],
    records: list[ComplianceRecord],
    rules_by_requirement: dict[str, list[ApplicabilityRule]],
    *,
    site_names: dict[str, str] | None = None,
    status_filter: str | None = None,
    search: str | None = None,
    as_of: date | None = None,
    horizon_days: int = EXPIRY_HORIZON_DAYS,
    treat_empty_rule_as_wildcard: bool = True,
) -> ComplianceOverview:
    """Build the overview table.

    ``search`` removes employees before counting; ``status_filter`` only
    hides rows after KPIs are counted.
    """
    site_names = site_names or {}
    needle = (search or "").strip().lower()
    in_scope = sorted(
        (e for e in employees if e.is_active and (not needle or _matches_search(e, needle))),
        key=lambda e: e.display_name,
    )
    ordered_catalog = sorted(catalog, key=lambda c: (c.category or "", c.code or ""))

    stop_emps: set[str] = set()
    exp_emps: set[str] = set()
    ok_emps: set[str] = set()
    stop_items = exp_items = ok_items = 0
    rows: list[dict[str, Any]] = []

    for emp, req, row in iter_applicable_statuses(
        in_scope,
        ordered_catalog,
        records,
        rules_by_requirement,
        as_of=as_of,
        horizon_days=horizon_days,
        treat_empty_rule_as_wildcard=treat_empty_rule_as_wildcard,
    ):
        if row.status in BLOCKING_STATUSES:
            stop_emps.add(emp.id)
            stop_items += 1
        elif row.status in WARNING_STATUSES:
            exp_emps.add(emp.id)
            exp_items += 1
        else:
            ok_emps.add(emp.id)
            ok_items += 1

        if status_filter and row.status != status_filter:
            continue

        rows.append(
            {
                "employee_id": emp.id,
                "employee_name": emp.display_name,
                "employee_number": emp.employee_number or "",
                "line": emp.line,
                "department": emp.team,
                "site_id": emp.site_id,
                "site_name": site_names.get(emp.site_id, "Unknown site") if emp.site_id else "",
                "compliance_id": req.id,
                "compliance_code": req.code,
                "compliance_name": req.name,
                "category": req.category,
                "status": row.status,
                "valid_to": row.valid_to,
                "days_left": row.days_left,
            }
        )

    return ComplianceOverview(
        kpis=_overview_kpis(stop_emps, stop_items, exp_emps, exp_items, ok_emps, ok_items),
        rows=rows,
    )
