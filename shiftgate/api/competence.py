"""Competence readiness API routes (station skill coverage for a shift roster)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from shiftgate.api.deps import (
    get_readiness_sources,
    is_debug,
    readiness_errors,
    require_uuid_param_or_422,
    validate_uuid_param_or_422,
)
from shiftgate.services.readiness.shift_competence import evaluate_shift_competence
from shiftgate.services.readiness.sources import ReadinessSources
from shiftgate.services.shift_params import parse_shift_context

router = APIRouter()


@router.get("/matrix-v2")
def api_competence_matrix(
    org_id: str = Query(...),
    site_id: str | None = Query(None),
    date: str | None = Query(None, description="Shift date, YYYY-MM-DD"),
    shift_code: str | None = Query(None),
    shift: str | None = Query(None, description="Alias of shift_code"),
    debug: str | None = Query(None),
    sources: ReadinessSources = Depends(get_readiness_sources),
) -> dict:
    """Operational readiness (OPS_GO / OPS_WARNING / OPS_NO_GO) for one shift roster."""
    require_uuid_param_or_422(org_id, "org_id")
    validate_uuid_param_or_422(site_id, "site_id")
    ctx = parse_shift_context(org_id, site_id, date, shift_code or shift)
    with readiness_errors("competence matrix"):
        result = evaluate_shift_competence(sources, ctx, debug=is_debug(debug))
    return result.to_json()
