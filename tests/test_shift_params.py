"""
Shift parameter parsing tests.
"""

from datetime import date

import pytest

from shiftgate.services.readiness.errors import ShiftContextError
from shiftgate.services.shift_params import (
    normalize_shift_param,
    parse_iso_date,
    parse_shift_context,
)

ORG = "11111111-1111-1111-1111-111111111111"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Day", "Day"),
        ("day", "Day"),
        ("1", "Day"),
        ("EVENING", "Evening"),
        ("2", "Evening"),
        ("em", "Evening"),
        ("night", "Night"),
        ("3", "Night"),
        ("FM", "Night"),
        ("s1", "S1"),
        (" S3 ", "S3"),
        ("morning", None),
        ("s4", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_shift_param(raw, expected) -> None:
    assert normalize_shift_param(raw) == expected


def test_parse_iso_date() -> None:
    assert parse_iso_date("2026-03-02") == date(2026, 3, 2)
    assert parse_iso_date("2026-02-30") is None
    assert parse_iso_date("2026-W42-1") is None
    assert parse_iso_date("20260302") is None
    assert parse_iso_date("") is None
    assert parse_iso_date(None) is None


def test_parse_shift_context_ok() -> None:
    ctx = parse_shift_context(ORG, "  ", "2026-03-02", "night")
    assert ctx.org_id == ORG
    assert ctx.site_id is None
    assert ctx.date == date(2026, 3, 2)
    assert ctx.shift_code == "Night"


@pytest.mark.parametrize(
    "date_raw,shift_raw,code",
    [
        (None, "Day", "SHIFT_CONTEXT_REQUIRED"),
        ("2026-03-02", "", "SHIFT_CONTEXT_REQUIRED"),
        ("02/03/2026", "Day", "INVALID_DATE"),
        ("20260302", "Day", "INVALID_DATE"),
        ("2026-W42-1", "Day", "INVALID_DATE"),
        ("2026-3-2", "Day", "INVALID_DATE"),
        ("2026-03-02", "brunch", "INVALID_SHIFT"),
    ],
)
def test_parse_shift_context_rejects(date_raw, shift_raw, code) -> None:
    with pytest.raises(ShiftContextError) as exc_info:
        parse_shift_context(ORG, None, date_raw, shift_raw)
    err = exc_info.value
    assert err.code == code
    assert err.step == "validate_input"
    assert err.status_code == 400
    assert err.to_payload()["ok"] is False
