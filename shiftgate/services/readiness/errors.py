"""Readiness engine errors.

Every error carries the pipeline ``step`` that failed so operators can tell
which read or input aborted the computation.
"""

from __future__ import annotations


class ReadinessError(Exception):
    """Base error for readiness computations."""

    code: str = "READINESS_FAILED"
    status_code: int = 500

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step}: {message}")
        self.step = step
        self.message = message

    def to_payload(self) -> dict:
        return {"ok": False, "step": self.step, "error": self.code, "message": self.message}


class UpstreamDataError(ReadinessError):
    """A collaborator read failed or returned a malformed row.

    The message is operator-facing and never contains raw database text;
    the original exception is chained as ``__cause__`` and logged.
    """

    code = "UPSTREAM_READ_FAILED"
    status_code = 500


class ShiftContextError(ReadinessError):
    """Missing or invalid date/shift_code. Raised before any resolver call."""

    status_code = 400

    def __init__(self, code: str, message: str) -> None:
        super().__init__("validate_input", message)
        self.code = code
