"""ShiftGate: roster-scoped compliance and operational readiness engine."""

__version__ = "0.1.0"
