"""Roster-scoped operational readiness (competence matrix).

Skill lookups depend on which requirement rows were found, so reads are
ordered: roster → employees → stations → requirements → skills → levels.
"""

from __future__ import annotations

import logging
from typing import Any

from shiftgate.config import Settings, get_settings
from shiftgate.schemas.readiness import CompetenceMatrixResponse
from shiftgate.services.readiness.requirement_aggregator import top_n
from shiftgate.services.readiness.sources import ReadinessSources
from shiftgate.services.readiness.station_coverage import (
    StationClassifier,
    StationCoverageAggregate,
    aggregate_station_coverage,
    build_employee_levels,
    build_station_requirements,
    default_station_classifier,
    mandatory_rows,
)
from shiftgate.services.readiness.types import ShiftContext

logger = logging.getLogger(__name__)


def competence_matrix_response(
    aggregate: StationCoverageAggregate,
    *,
    top_stations: int,
    top_employees: int,
    debug: dict[str, Any] | None = None,
) -> CompetenceMatrixResponse:
    stations, has_more_stations = top_n(aggregate.stations, top_stations)
    employees, has_more_employees = top_n(aggregate.employees, top_employees)
    return CompetenceMatrixResponse(
        ops_readiness_flag=aggregate.ops_readiness_flag,
        kpis=aggregate.kpis.to_dict(),
        by_station=[s.to_dict() for s in stations],
        has_more_stations=has_more_stations,
        by_employee=[e.to_dict() for e in employees],
        has_more_employees=has_more_employees,
        debug=debug,
    )


def evaluate_shift_competence(
    sources: ReadinessSources,
    ctx: ShiftContext,
    *,
    settings: Settings | None = None,
    classify: StationClassifier = default_station_classifier,
    debug: bool = False,
) -> CompetenceMatrixResponse:
    """Station skill coverage of the shift roster."""
    settings = settings or get_settings()
    roster_ids = sources.roster.resolve(ctx.org_id, ctx.site_id, ctx.date, ctx.shift_code)

    debug_payload: dict[str, Any] | None = None
    if debug:
        debug_payload = {
            "org_id": ctx.org_id,
            "site_id": ctx.site_id,
            "date": ctx.date.isoformat(),
            "shift_code": ctx.shift_code,
            "roster_employee_ids_count": len(roster_ids),
            "stations_queried": 0,
            "requirements_rows": 0,
            "ratings_rows": 0,
        }

    if not roster_ids:
        logger.info(
            "Empty roster org=%s date=%s shift=%s: OPS_GO",
            ctx.org_id,
            ctx.date,
            ctx.shift_code,
        )
        return competence_matrix_response(
            StationCoverageAggregate.empty(),
            top_stations=settings.top_stations,
            top_employees=settings.top_employees,
            debug=debug_payload,
        )

    employees = sources.employees.active_employees(ctx.org_id, None, roster_ids)
    stations = sources.stations.active_stations(ctx.org_id)
    requirement_rows = mandatory_rows(
        sources.stations.requirements(ctx.org_id, [s.id for s in stations])
    )
    skill_ids = sorted({r.skill_id for r in requirement_rows})
    skill_codes = sources.skills.skill_codes(ctx.org_id, skill_ids)
    level_rows = sources.skills.employee_levels([e.id for e in employees], skill_ids)

    aggregate = aggregate_station_coverage(
        employees,
        stations,
        build_station_requirements(requirement_rows, skill_codes),
        build_employee_levels(level_rows),
        classify=classify,
    )
    logger.info(
        "Competence org=%s date=%s shift=%s roster=%d flag=%s no_go=%d",
        ctx.org_id,
        ctx.date,
        ctx.shift_code,
        len(roster_ids),
        aggregate.ops_readiness_flag,
        aggregate.kpis.stations_no_go,
    )

    if debug_payload is not None:
        debug_payload.update(
            stations_queried=len(stations),
            requirements_rows=len(requirement_rows),
            ratings_rows=len(level_rows),
        )
    return competence_matrix_response(
        aggregate,
        top_stations=settings.top_stations,
        top_employees=settings.top_employees,
        debug=debug_payload,
    )
