"""Setup readiness composer (GREEN / AMBER / RED dashboard summary).

Four axes are scored 0..100 and combined with equal weights:

- foundation: share of five "have any rows" checks that pass;
- coverage: mean of station-requirement and station-eligibility coverage %;
- compliance: % of active employees with no blocking or expiring item
  (0 while the compliance catalog is empty);
- operational: 50 when demand rows exist, plus 50 when no illegal issues are open.

Every rounding step is half-up.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from shiftgate.services.readiness.constants import (
    AMBER,
    COMPLIANCE_AMBER_VALID_PCT,
    COMPLIANCE_GREEN_VALID_PCT,
    COMPOSITE_WEIGHTS,
    GREEN,
    OPERATIONAL_GAPS_POINTS,
    OPERATIONAL_NO_ILLEGAL_POINTS,
    READINESS_AMBER_AT,
    READINESS_GREEN_AT,
    RED,
)
from shiftgate.services.readiness.types import ReadinessStatus


def round_half_up(value: float) -> int:
    """Round to the nearest int, halves away from zero (2.5 → 3)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent(numerator: int, denominator: int) -> int:
    """numerator / denominator as a rounded percentage; 0 when denominator <= 0."""
    if denominator <= 0:
        return 0
    return round_half_up(numerator / denominator * 100)


def status_from_score(
    score: int,
    green_at: int = READINESS_GREEN_AT,
    amber_at: int = READINESS_AMBER_AT,
) -> ReadinessStatus:
    if score >= green_at:
        return GREEN
    if score >= amber_at:
        return AMBER
    return RED


@dataclass(frozen=True)
class SetupCounts:
    """Raw inputs for the composer, gathered by the setup pipeline."""

    stations: int = 0
    employees: int = 0
    skills: int = 0
    requirements: int = 0
    ratings: int = 0
    stations_with_requirements: int = 0
    stations_with_eligible: int = 0
    catalog_count: int = 0
    valid_employees: int = 0
    legal_blockers: int = 0
    gaps_generated_count: int = 0
    illegal_issues_count: int = 0


@dataclass(frozen=True)
class AxisScore:
    status: ReadinessStatus
    score: int
    details: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "score": self.score, **self.details}


@dataclass(frozen=True)
class SetupReadiness:
    foundation: AxisScore
    coverage: AxisScore
    compliance: AxisScore
    operational: AxisScore
    overall: AxisScore

    def to_dict(self) -> dict[str, Any]:
        return {
            "foundation": self.foundation.to_dict(),
            "coverage": self.coverage.to_dict(),
            "compliance": self.compliance.to_dict(),
            "operational": self.operational.to_dict(),
            "overall": self.overall.to_dict(),
        }


def score_foundation(counts: SetupCounts) -> AxisScore:
    checks = [
        counts.stations > 0,
        counts.employees > 0,
        counts.skills > 0,
        counts.requirements > 0,
        counts.ratings > 0,
    ]
    met = sum(checks)
    if met == len(checks):
        status: ReadinessStatus = GREEN
    elif met == 0:
        status = RED
    else:
        status = AMBER
    return AxisScore(
        status=status,
        score=percent(met, len(checks)),
        details={
            "stations": counts.stations,
            "employees": counts.employees,
            "skills": counts.skills,
            "requirements": counts.requirements,
            "ratings": counts.ratings,
        },
    )


def score_coverage(
    counts: SetupCounts,
    green_at: int = READINESS_GREEN_AT,
    amber_at: int = READINESS_AMBER_AT,
) -> AxisScore:
    requirement_pct = percent(counts.stations_with_requirements, counts.stations)
    eligibility_pct = percent(counts.stations_with_eligible, counts.stations)
    score = round_half_up((requirement_pct + eligibility_pct) / 2) if counts.stations > 0 else 0
    return AxisScore(
        status=status_from_score(score, green_at, amber_at),
        score=score,
        details={
            "total_stations": counts.stations,
            "stations_with_requirements": counts.stations_with_requirements,
            "stations_with_eligible": counts.stations_with_eligible,
            "station_requirement_coverage_pct": requirement_pct,
            "station_eligibility_coverage_pct": eligibility_pct,
        },
    )


def score_compliance(counts: SetupCounts) -> AxisScore:
    has_scope = counts.catalog_count > 0 and counts.employees > 0
    valid_employees = counts.valid_employees if has_scope else 0
    valid_pct = percent(valid_employees, counts.employees) if has_scope else 0
    legal_blockers = counts.legal_blockers if has_scope else 0

    if counts.catalog_count == 0:
        status: ReadinessStatus = RED
    elif legal_blockers == 0 and valid_pct >= COMPLIANCE_GREEN_VALID_PCT:
        status = GREEN
    elif valid_pct >= COMPLIANCE_AMBER_VALID_PCT:
        status = AMBER
    else:
        status = RED
    return AxisScore(
        status=status,
        score=valid_pct if counts.catalog_count > 0 else 0,
        details={
            "catalog_count": counts.catalog_count,
            "total_employees": counts.employees,
            "valid_employees": valid_employees,
            "valid_percent": valid_pct,
            "legal_blockers": legal_blockers,
        },
    )


def score_operational(counts: SetupCounts) -> AxisScore:
    gaps_generated = counts.gaps_generated_count > 0
    no_illegal = counts.illegal_issues_count == 0
    score = (OPERATIONAL_GAPS_POINTS if gaps_generated else 0) + (
        OPERATIONAL_NO_ILLEGAL_POINTS if no_illegal else 0
    )
    if gaps_generated and no_illegal:
        status: ReadinessStatus = GREEN
    elif gaps_generated or no_illegal:
        status = AMBER
    else:
        status = RED
    return AxisScore(
        status=status,
        score=score,
        details={
            "gaps_generated": gaps_generated,
            "gaps_generated_count": counts.gaps_generated_count,
            "illegal_issues_count": counts.illegal_issues_count,
        },
    )


def compose_readiness(
    counts: SetupCounts,
    *,
    green_at: int = READINESS_GREEN_AT,
    amber_at: int = READINESS_AMBER_AT,
    weights: dict[str, float] | None = None,
) -> SetupReadiness:
    """Score all four axes and the weighted overall status."""
    weights = weights or COMPOSITE_WEIGHTS
    foundation = score_foundation(counts)
    coverage = score_coverage(counts, green_at, amber_at)
    compliance = score_compliance(counts)
    operational = score_operational(counts)

    overall_score = round_half_up(
        foundation.score * weights["foundation"]
        + coverage.score * weights["coverage"]
        + compliance.score * weights["compliance"]
        + operational.score * weights["operational"]
    )
    return SetupReadiness(
        foundation=foundation,
        coverage=coverage,
        compliance=compliance,
        operational=operational,
        overall=AxisScore(
            status=status_from_score(overall_score, green_at, amber_at),
            score=overall_score,
            details={},
        ),
    )
