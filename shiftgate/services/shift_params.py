"""Shift query parameter parsing.

Turns raw ``date`` / ``shift_code`` query strings into a ShiftContext, or
raises ShiftContextError before anything touches the database.
"""

from __future__ import annotations

import re
from datetime import date

from shiftgate.services.readiness.constants import SHIFT_CODES
from shiftgate.services.readiness.errors import ShiftContextError
from shiftgate.services.readiness.types import ShiftContext

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")

_SHIFT_ALIASES: dict[str, str] = {
    "day": "Day",
    "1": "Day",
    "evening": "Evening",
    "2": "Evening",
    "em": "Evening",
    "night": "Night",
    "3": "Night",
    "fm": "Night",
    "s1": "S1",
    "s2": "S2",
    "s3": "S3",
}


def normalize_shift_param(raw: str | None) -> str | None:
    """Map a free-text shift alias to one of SHIFT_CODES; None if unknown or empty.

    >>> normalize_shift_param("night")
    'Night'
    >>> normalize_shift_param("s2")
    'S2'
    """
    value = (raw or "").strip()
    if not value:
        return None
    code = _SHIFT_ALIASES.get(value.lower())
    return code if code in SHIFT_CODES else None


def parse_iso_date(raw: str | None) -> date | None:
    """YYYY-MM-DD → date; None when empty or malformed."""
    value = (raw or "").strip()
    if not _ISO_DATE.fullmatch(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_shift_context(
    org_id: str,
    site_id: str | None,
    date_raw: str | None,
    shift_raw: str | None,
) -> ShiftContext:
    """Validate the shift parameters of a roster-scoped request."""
    date_value = (date_raw or "").strip()
    shift_value = (shift_raw or "").strip()
    if not date_value or not shift_value:
        raise ShiftContextError("SHIFT_CONTEXT_REQUIRED", "date and shift_code are required")

    shift_date = parse_iso_date(date_value)
    if shift_date is None:
        raise ShiftContextError("INVALID_DATE", "date must be YYYY-MM-DD")

    shift_code = normalize_shift_param(shift_value)
    if shift_code is None:
        raise ShiftContextError(
            "INVALID_SHIFT",
            "shift_code must be one of " + ", ".join(SHIFT_CODES),
        )

    return ShiftContext(
        org_id=org_id.strip(),
        site_id=(site_id or "").strip() or None,
        date=shift_date,
        shift_code=shift_code,
    )
