"""Setup readiness API route (dashboard GREEN / AMBER / RED)."""

from __future__ import annotations

from datetime import date as date_type

from fastapi import APIRouter, Depends, Query

from shiftgate.api.deps import (
    get_readiness_sources,
    is_debug,
    readiness_errors,
    require_uuid_param_or_422,
    validate_uuid_param_or_422,
)
from shiftgate.services.readiness.setup_readiness import evaluate_setup_readiness
from shiftgate.services.readiness.sources import ReadinessSources
from shiftgate.services.shift_params import normalize_shift_param, parse_iso_date

router = APIRouter()


@router.get("/readiness")
def api_setup_readiness(
    org_id: str = Query(...),
    site_id: str | None = Query(None),
    date: str | None = Query(None, description="Plan date, YYYY-MM-DD; defaults to today"),
    shift_code: str | None = Query(None),
    shift: str | None = Query(None, description="Alias of shift_code"),
    debug: str | None = Query(None),
    sources: ReadinessSources = Depends(get_readiness_sources),
) -> dict:
    """Foundation, coverage, compliance and operational scores plus the overall status.

    A missing or malformed date falls back to today; an unknown shift means all shifts.
    """
    require_uuid_param_or_422(org_id, "org_id")
    validate_uuid_param_or_422(site_id, "site_id")
    plan_date = parse_iso_date(date) or date_type.today()
    with readiness_errors("setup readiness"):
        result = evaluate_setup_readiness(
            sources,
            org_id.strip(),
            (site_id or "").strip() or None,
            plan_date,
            normalize_shift_param(shift_code or shift),
            debug=is_debug(debug),
        )
    return result.to_json()
