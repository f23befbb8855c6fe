"""Setup readiness: org-wide GREEN/AMBER/RED dashboard summary.

Gathers the composer inputs from the sources:

- foundation row counts;
- stations with at least one mandatory requirement, and how many of those are
  OPS_GO when every active employee in scope is considered;
- per-employee org-wide legal status (valid = LEGAL_OK, blockers = LEGAL_BLOCKED);
- demand rows for the date (and shift, when given);
- illegal issues: (station, shift) slots on the date whose assigned employees
  include someone with a blocking compliance item.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from shiftgate.config import Settings, get_settings
from shiftgate.schemas.readiness import SetupReadinessResponse
from shiftgate.services.readiness.applicability import group_rules_by_requirement
from shiftgate.services.readiness.composer import SetupCounts, compose_readiness
from shiftgate.services.readiness.constants import LEGAL_BLOCKED, LEGAL_OK, OPS_GO
from shiftgate.services.readiness.requirement_aggregator import aggregate_compliance
from shiftgate.services.readiness.sources import ReadinessSources
from shiftgate.services.readiness.station_coverage import (
    build_employee_levels,
    build_station_requirements,
    compute_station_readiness,
    mandatory_rows,
)

logger = logging.getLogger(__name__)


def evaluate_setup_readiness(
    sources: ReadinessSources,
    org_id: str,
    site_id: str | None,
    plan_date: date,
    shift_code: str | None = None,
    *,
    settings: Settings | None = None,
    as_of: date | None = None,
    debug: bool = False,
) -> SetupReadinessResponse:
    settings = settings or get_settings()

    foundation = sources.setup.foundation_counts(org_id, site_id)
    employees = sources.employees.active_employees(org_id, site_id, None)
    employee_ids = {e.id for e in employees}

    # Operational coverage over all active employees in scope
    stations = sources.stations.active_stations(org_id)
    requirement_rows = mandatory_rows(
        sources.stations.requirements(org_id, [s.id for s in stations])
    )
    skill_ids = sorted({r.skill_id for r in requirement_rows})
    station_requirements = build_station_requirements(
        requirement_rows, sources.skills.skill_codes(org_id, skill_ids)
    )
    levels = build_employee_levels(
        sources.skills.employee_levels(sorted(employee_ids), skill_ids)
    )
    stations_with_requirements = [s for s in stations if station_requirements.get(s.id)]
    stations_with_eligible = sum(
        1
        for s in stations_with_requirements
        if compute_station_readiness(
            s, station_requirements[s.id], sorted(employee_ids), levels
        ).status
        == OPS_GO
    )

    # Rostered employees outside the site scope still count for illegal issues
    station_rosters = sources.roster.station_rosters(org_id, site_id, plan_date, shift_code)
    rostered_ids = {emp_id for ids in station_rosters.values() for emp_id in ids}
    extra_ids = sorted(rostered_ids - employee_ids)
    evaluated = employees + (
        sources.employees.active_employees(org_id, None, extra_ids) if extra_ids else []
    )

    catalog = sources.catalog.active_requirements(org_id)
    compliance_rows_count = 0
    blocking_items: dict[str, int] = {}
    valid_employees = legal_blockers = 0
    if catalog and evaluated:
        rules = group_rules_by_requirement(sources.catalog.applicability_rules(org_id))
        records = sources.records.for_employees(org_id, [e.id for e in evaluated])
        compliance_rows_count = len(records)
        aggregate = aggregate_compliance(
            evaluated,
            catalog,
            records,
            rules,
            as_of=as_of,
            horizon_days=settings.expiry_horizon_days,
            treat_empty_rule_as_wildcard=settings.treat_empty_rule_as_wildcard,
        )
        for rollup in aggregate.employees:
            if rollup.blocking_items:
                blocking_items[rollup.employee_id] = len(rollup.blocking_items)
            if rollup.employee_id not in employee_ids:
                continue
            if rollup.status == LEGAL_OK:
                valid_employees += 1
            elif rollup.status == LEGAL_BLOCKED:
                legal_blockers += 1

    illegal_slots = 0
    blocker_items_total = 0
    for ids in station_rosters.values():
        blocked = [emp_id for emp_id in ids if emp_id in blocking_items]
        if blocked:
            illegal_slots += 1
            blocker_items_total += sum(blocking_items[emp_id] for emp_id in blocked)

    gaps_generated_count = sources.setup.demand_count(org_id, plan_date, shift_code)

    counts = SetupCounts(
        stations=foundation.get("stations", 0),
        employees=foundation.get("employees", 0),
        skills=foundation.get("skills", 0),
        requirements=foundation.get("requirements", 0),
        ratings=foundation.get("ratings", 0),
        stations_with_requirements=len(stations_with_requirements),
        stations_with_eligible=stations_with_eligible,
        catalog_count=len(catalog),
        valid_employees=valid_employees,
        legal_blockers=legal_blockers,
        gaps_generated_count=gaps_generated_count,
        illegal_issues_count=illegal_slots,
    )
    readiness = compose_readiness(
        counts,
        green_at=settings.readiness_green_at,
        amber_at=settings.readiness_amber_at,
    )
    logger.info(
        "Setup readiness org=%s date=%s overall=%s score=%d",
        org_id,
        plan_date,
        readiness.overall.status,
        readiness.overall.score,
    )

    debug_payload: dict[str, Any] | None = None
    if debug:
        debug_payload = {
            "filters": {
                "date": plan_date.isoformat(),
                "shift_code": shift_code,
                "site_id": site_id,
            },
            "sources": {
                "stations": {"table": "stations", "count": len(stations)},
                "requirements": {
                    "table": "station_skill_requirements",
                    "rows": len(requirement_rows),
                    "stations_with_requirements": len(stations_with_requirements),
                },
                "eligibility": {
                    "employees_considered": len(employee_ids),
                    "stations_with_eligible": stations_with_eligible,
                },
                "compliance": {
                    "catalog_count": len(catalog),
                    "employees_evaluated": len(evaluated),
                    "employee_compliance_rows": compliance_rows_count,
                },
                "legal_blockers": {
                    "station_shifts": len(station_rosters),
                    "station_shifts_with_blockers": illegal_slots,
                    "roster_employee_ids_total": sum(len(ids) for ids in station_rosters.values()),
                    "compliance_blocker_items_total": blocker_items_total,
                },
                "demand": {"table": "machine_demand", "rows": gaps_generated_count},
            },
        }

    return SetupReadinessResponse(
        date=plan_date,
        shift_code=shift_code,
        readiness=readiness.to_dict(),
        debug=debug_payload,
    )
