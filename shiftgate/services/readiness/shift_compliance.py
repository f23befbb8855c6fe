"""Roster-scoped legal readiness: compliance matrix and overview table.

Reads run sequentially through the injected sources: roster first, then
employees, catalog, applicability and records for the rostered employees only.
An empty roster short-circuits to a vacuous LEGAL_GO without further reads.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from shiftgate.config import Settings, get_settings
from shiftgate.schemas.readiness import (
    ComplianceMatrixResponse,
    ComplianceOverviewResponse,
)
from shiftgate.services.readiness.applicability import group_rules_by_requirement
from shiftgate.services.readiness.constants import DEBUG_SOURCE_COMPLIANCE
from shiftgate.services.readiness.requirement_aggregator import (
    ComplianceAggregate,
    ComplianceOverview,
    aggregate_compliance,
    build_compliance_overview,
    top_n,
)
from shiftgate.services.readiness.sources import ReadinessSources
from shiftgate.services.readiness.types import ShiftContext

logger = logging.getLogger(__name__)


def _scope_inputs(ctx: ShiftContext, roster_count: int) -> dict[str, Any]:
    return {
        "org_id": ctx.org_id,
        "site_id": ctx.site_id,
        "date": ctx.date.isoformat(),
        "shift_code": ctx.shift_code,
        "roster_employee_ids_count": roster_count,
    }


def compliance_matrix_response(
    aggregate: ComplianceAggregate,
    *,
    top_requirements: int,
    top_employees: int,
    debug: dict[str, Any] | None = None,
) -> ComplianceMatrixResponse:
    """Truncate a full aggregate into the matrix payload."""
    requirements, has_more_requirements = top_n(aggregate.requirements, top_requirements)
    employees, has_more_employees = top_n(aggregate.employees, top_employees)
    return ComplianceMatrixResponse(
        readiness_flag=aggregate.readiness_flag,
        kpis=aggregate.kpis.to_dict(),
        by_requirement=[r.to_dict() for r in requirements],
        has_more_requirements=has_more_requirements,
        by_employee=[e.to_dict() for e in employees],
        has_more_employees=has_more_employees,
        expiring_sample=aggregate.expiring_sample,
        debug=debug,
    )


def evaluate_shift_compliance(
    sources: ReadinessSources,
    ctx: ShiftContext,
    *,
    station_id: str | None = None,
    settings: Settings | None = None,
    as_of: date | None = None,
    debug: bool = False,
) -> ComplianceMatrixResponse:
    """Legal readiness of the shift roster (optionally one station's roster)."""
    settings = settings or get_settings()
    roster_ids = sources.roster.resolve(
        ctx.org_id, ctx.site_id, ctx.date, ctx.shift_code, station_id=station_id
    )

    if not roster_ids:
        logger.info(
            "Empty roster org=%s date=%s shift=%s: LEGAL_GO",
            ctx.org_id,
            ctx.date,
            ctx.shift_code,
        )
        return compliance_matrix_response(
            ComplianceAggregate.empty(),
            top_requirements=settings.top_requirements,
            top_employees=settings.top_employees,
            debug=(
                {
                    "source": DEBUG_SOURCE_COMPLIANCE,
                    "scope_inputs": _scope_inputs(ctx, 0),
                    "catalog_count": 0,
                    "compliance_rows_count": 0,
                }
                if debug
                else None
            ),
        )

    employees = sources.employees.active_employees(ctx.org_id, None, roster_ids)
    catalog = sources.catalog.active_requirements(ctx.org_id)
    rules = group_rules_by_requirement(sources.catalog.applicability_rules(ctx.org_id))
    records = sources.records.for_employees(ctx.org_id, [e.id for e in employees])

    aggregate = aggregate_compliance(
        employees,
        catalog,
        records,
        rules,
        as_of=as_of,
        horizon_days=settings.expiry_horizon_days,
        treat_empty_rule_as_wildcard=settings.treat_empty_rule_as_wildcard,
        expiring_sample_size=settings.expiring_sample_size,
    )
    logger.info(
        "Compliance org=%s date=%s shift=%s roster=%d flag=%s blocking=%d expiring=%d",
        ctx.org_id,
        ctx.date,
        ctx.shift_code,
        len(roster_ids),
        aggregate.readiness_flag,
        aggregate.kpis.blocking_count,
        aggregate.kpis.expiring_count,
    )
    return compliance_matrix_response(
        aggregate,
        top_requirements=settings.top_requirements,
        top_employees=settings.top_employees,
        debug=(
            {
                "source": DEBUG_SOURCE_COMPLIANCE,
                "scope_inputs": _scope_inputs(ctx, len(roster_ids)),
                "catalog_count": len(catalog),
                "compliance_rows_count": len(records),
            }
            if debug
            else None
        ),
    )


def compliance_overview(
    sources: ReadinessSources,
    ctx: ShiftContext,
    *,
    category: str | None = None,
    status: str | None = None,
    search: str | None = None,
    settings: Settings | None = None,
    as_of: date | None = None,
    debug: bool = False,
) -> ComplianceOverviewResponse:
    """Flat employee × requirement table for the shift roster.

    ``category`` narrows the catalog before evaluation, ``search`` narrows
    employees before KPIs are counted, ``status`` only hides rows.
    """
    settings = settings or get_settings()
    roster_ids = sources.roster.resolve(ctx.org_id, ctx.site_id, ctx.date, ctx.shift_code)
    site_name = sources.sites.site_name(ctx.org_id, ctx.site_id) if ctx.site_id else None

    def _debug(catalog_count: int, employees_count: int, records_count: int) -> dict | None:
        if not debug:
            return None
        scope = _scope_inputs(ctx, len(roster_ids))
        scope["roster_scoping"] = True
        return {
            "source": DEBUG_SOURCE_COMPLIANCE,
            "scope_inputs": scope,
            "catalog_count": catalog_count,
            "employees_count": employees_count,
            "employee_compliance_rows_count": records_count,
        }

    if not roster_ids:
        empty = ComplianceOverview.empty()
        return ComplianceOverviewResponse(
            kpis=empty.kpis,
            rows=empty.rows,
            catalog=[],
            active_site_id=ctx.site_id,
            active_site_name=site_name,
            debug=_debug(0, 0, 0),
        )

    employees = sources.employees.active_employees(ctx.org_id, None, roster_ids)
    catalog = sorted(
        sources.catalog.active_requirements(ctx.org_id, category=category),
        key=lambda c: (c.category or "", c.code or ""),
    )
    rules = group_rules_by_requirement(sources.catalog.applicability_rules(ctx.org_id))
    records = sources.records.for_employees(ctx.org_id, [e.id for e in employees])
    site_names = sources.sites.site_names(ctx.org_id)

    overview = build_compliance_overview(
        employees,
        catalog,
        records,
        rules,
        site_names=site_names,
        status_filter=status,
        search=search,
        as_of=as_of,
        horizon_days=settings.expiry_horizon_days,
        treat_empty_rule_as_wildcard=settings.treat_empty_rule_as_wildcard,
    )
    return ComplianceOverviewResponse(
        kpis=overview.kpis,
        rows=overview.rows,
        catalog=[
            {"id": c.id, "code": c.code, "name": c.name, "category": c.category}
            for c in catalog
        ],
        active_site_id=ctx.site_id,
        active_site_name=site_name,
        debug=_debug(len(catalog), len(employees), len(records)),
    )
