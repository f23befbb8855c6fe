"""Shift readiness engine: compliance status, roster aggregation, station coverage, setup composer."""

from shiftgate.services.readiness.applicability import applies_to
from shiftgate.services.readiness.composer import compose_readiness, status_from_score
from shiftgate.services.readiness.errors import (
    ReadinessError,
    ShiftContextError,
    UpstreamDataError,
)
from shiftgate.services.readiness.requirement_aggregator import (
    aggregate_compliance,
    build_compliance_overview,
)
from shiftgate.services.readiness.setup_readiness import evaluate_setup_readiness
from shiftgate.services.readiness.shift_competence import evaluate_shift_competence
from shiftgate.services.readiness.shift_compliance import (
    compliance_overview,
    evaluate_shift_compliance,
)
from shiftgate.services.readiness.sources import ReadinessSources
from shiftgate.services.readiness.station_coverage import (
    aggregate_station_coverage,
    compute_station_readiness,
    shift_ops_readiness_from_stations,
)
from shiftgate.services.readiness.status_engine import compute_status, days_left

__all__ = [
    "ReadinessError",
    "ReadinessSources",
    "ShiftContextError",
    "UpstreamDataError",
    "aggregate_compliance",
    "aggregate_station_coverage",
    "applies_to",
    "build_compliance_overview",
    "compliance_overview",
    "compose_readiness",
    "compute_station_readiness",
    "compute_status",
    "days_left",
    "evaluate_setup_readiness",
    "evaluate_shift_competence",
    "evaluate_shift_compliance",
    "shift_ops_readiness_from_stations",
    "status_from_score",
]
