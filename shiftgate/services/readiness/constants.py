"""Readiness engine constants: status vocabularies, severity orders, caps, weights.

Defaults here mirror the Settings defaults; Settings wins at request time.
"""

from __future__ import annotations

# Status engine
EXPIRY_HORIZON_DAYS: int = 30

STATUS_VALID = "valid"
STATUS_EXPIRING = "expiring"
STATUS_EXPIRED = "expired"
STATUS_MISSING = "missing"
STATUS_WAIVED = "waived"

BLOCKING_STATUSES: frozenset[str] = frozenset({STATUS_MISSING, STATUS_EXPIRED})
WARNING_STATUSES: frozenset[str] = frozenset({STATUS_EXPIRING})
HEALTHY_STATUSES: frozenset[str] = frozenset({STATUS_VALID, STATUS_WAIVED})

# Legal (compliance) axis
LEGAL_GO = "LEGAL_GO"
LEGAL_WARNING = "LEGAL_WARNING"
LEGAL_NO_GO = "LEGAL_NO_GO"

LEGAL_OK = "LEGAL_OK"
LEGAL_BLOCKED = "LEGAL_BLOCKED"

EMPLOYEE_LEGAL_SEVERITY: dict[str, int] = {LEGAL_BLOCKED: 0, LEGAL_WARNING: 1, LEGAL_OK: 2}

# Operational (station skill coverage) axis
OPS_GO = "OPS_GO"
OPS_WARNING = "OPS_WARNING"
OPS_NO_GO = "OPS_NO_GO"

OPS_SEVERITY: dict[str, int] = {OPS_NO_GO: 0, OPS_WARNING: 1, OPS_GO: 2}

GAP_MISSING_SKILL = "MISSING_SKILL"

# Response caps
TOP_REQUIREMENTS: int = 50
TOP_EMPLOYEES: int = 50
TOP_STATIONS: int = 50
EXPIRING_SAMPLE_SIZE: int = 10
TOP_GAPS_PER_EMPLOYEE: int = 10

# Setup readiness composer
GREEN = "GREEN"
AMBER = "AMBER"
RED = "RED"

READINESS_GREEN_AT: int = 85
READINESS_AMBER_AT: int = 60

COMPOSITE_WEIGHTS: dict[str, float] = {
    "foundation": 0.25,
    "coverage": 0.25,
    "compliance": 0.25,
    "operational": 0.25,
}

OPERATIONAL_GAPS_POINTS: int = 50
OPERATIONAL_NO_ILLEGAL_POINTS: int = 50

COMPLIANCE_GREEN_VALID_PCT: int = 95
COMPLIANCE_AMBER_VALID_PCT: int = 80

# Closed set of shift codes accepted by the roster resolver
SHIFT_CODES: tuple[str, ...] = ("Day", "Evening", "Night", "S1", "S2", "S3")

DEBUG_SOURCE_COMPLIANCE = (
    "tables:employees,compliance_catalog,employee_compliance,compliance_requirement_applicability"
)
