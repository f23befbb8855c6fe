"""Compliance status engine: one requirement's status and days left.

Dates are compared date-only against ``as_of`` (defaults to today).
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from shiftgate.services.readiness.constants import (
    EXPIRY_HORIZON_DAYS,
    STATUS_EXPIRED,
    STATUS_EXPIRING,
    STATUS_MISSING,
    STATUS_VALID,
    STATUS_WAIVED,
)
from shiftgate.services.readiness.types import ComplianceStatus


def _as_date(value: date | datetime) -> date:
    """Truncate datetimes to their date; dates pass through."""
    if isinstance(value, datetime):
        return value.date()
    return value


def compute_status(
    valid_to: date | datetime | None,
    waived: bool,
    as_of: date | None = None,
    horizon_days: int = EXPIRY_HORIZON_DAYS,
) -> ComplianceStatus:
    """Return valid | expiring | expired | missing | waived.

    waived wins over everything, including a past valid_to. valid_to equal to
    today is expiring, and the horizon boundary (today + horizon_days) is inclusive.
    """
    if waived:
        return STATUS_WAIVED
    if valid_to is None:
        return STATUS_MISSING
    today = as_of or date.today()
    to = _as_date(valid_to)
    if to < today:
        return STATUS_EXPIRED
    if to <= today + timedelta(days=horizon_days):
        return STATUS_EXPIRING
    return STATUS_VALID


def days_left(valid_to: date | datetime | None, as_of: date | None = None) -> int | None:
    """Whole days from today to valid_to (negative when past). None when valid_to is None."""
    if valid_to is None:
        return None
    today = as_of or date.today()
    return (_as_date(valid_to) - today).days
