"""Compliance readiness API routes (roster-scoped legal readiness)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from shiftgate.api.deps import (
    get_readiness_sources,
    is_debug,
    readiness_errors,
    require_uuid_param_or_422,
    validate_uuid_param_or_422,
)
from shiftgate.services.readiness.shift_compliance import (
    compliance_overview,
    evaluate_shift_compliance,
)
from shiftgate.services.readiness.sources import ReadinessSources
from shiftgate.services.shift_params import parse_shift_context

router = APIRouter()


@router.get("/matrix-v2")
def api_compliance_matrix(
    org_id: str = Query(...),
    site_id: str | None = Query(None),
    date: str | None = Query(None, description="Shift date, YYYY-MM-DD"),
    shift_code: str | None = Query(None),
    shift: str | None = Query(None, description="Alias of shift_code"),
    station_id: str | None = Query(None),
    debug: str | None = Query(None),
    sources: ReadinessSources = Depends(get_readiness_sources),
) -> dict:
    """Legal readiness (LEGAL_GO / LEGAL_WARNING / LEGAL_NO_GO) for one shift roster."""
    require_uuid_param_or_422(org_id, "org_id")
    validate_uuid_param_or_422(site_id, "site_id")
    validate_uuid_param_or_422(station_id, "station_id")
    ctx = parse_shift_context(org_id, site_id, date, shift_code or shift)
    with readiness_errors("compliance matrix"):
        result = evaluate_shift_compliance(
            sources,
            ctx,
            station_id=(station_id or "").strip() or None,
            debug=is_debug(debug),
        )
    return result.to_json()


@router.get("/overview-v2")
def api_compliance_overview(
    org_id: str = Query(...),
    site_id: str | None = Query(None),
    date: str | None = Query(None, description="Shift date, YYYY-MM-DD"),
    shift_code: str | None = Query(None),
    shift: str | None = Query(None, description="Alias of shift_code"),
    category: str | None = Query(None),
    status: str | None = Query(None),
    search: str | None = Query(None),
    debug: str | None = Query(None),
    sources: ReadinessSources = Depends(get_readiness_sources),
) -> dict:
    """Employee × requirement table for one shift roster, with KPI buckets."""
    require_uuid_param_or_422(org_id, "org_id")
    validate_uuid_param_or_422(site_id, "site_id")
    ctx = parse_shift_context(org_id, site_id, date, shift_code or shift)
    with readiness_errors("compliance overview"):
        result = compliance_overview(
            sources,
            ctx,
            category=(category or "").strip() or None,
            status=(status or "").strip() or None,
            search=(search or "").strip() or None,
            debug=is_debug(debug),
        )
    return result.to_json()
