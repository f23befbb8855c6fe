"""Shared FastAPI dependencies for API routes."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from uuid import UUID

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from shiftgate.db.session import get_db  # re-export
from shiftgate.services.readiness.errors import ReadinessError
from shiftgate.services.readiness.sources import ReadinessSources

logger = logging.getLogger(__name__)

__all__ = [
    "get_db",
    "get_readiness_sources",
    "is_debug",
    "readiness_errors",
    "require_uuid_param_or_422",
    "validate_uuid_param_or_422",
]


def validate_uuid_param_or_422(value: str | None, param_name: str) -> None:
    """Validate value is a valid UUID; raise HTTPException 422 if not.

    Empty/None values pass (caller handles omission).
    """
    if not value or not value.strip():
        return
    try:
        UUID(value.strip())
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=422,
            detail=f"Invalid {param_name}: must be a valid UUID",
        ) from None


def require_uuid_param_or_422(value: str | None, param_name: str) -> None:
    """Like validate_uuid_param_or_422, but a blank value is rejected too."""
    if not value or not value.strip():
        raise HTTPException(status_code=422, detail=f"Missing {param_name}")
    validate_uuid_param_or_422(value, param_name)


def get_readiness_sources(db: Session = Depends(get_db)) -> ReadinessSources:
    """SQLAlchemy-backed sources bound to the request session."""
    return ReadinessSources.from_session(db)


def is_debug(value: str | None) -> bool:
    """Only ``debug=1`` turns on the ``_debug`` payload."""
    return (value or "").strip() == "1"


@contextmanager
def readiness_errors(endpoint: str) -> Iterator[None]:
    """Pass ReadinessError through; turn anything else into step ``unexpected``.

    ReadinessError is rendered by the handler registered in ``main``.
    """
    try:
        yield
    except ReadinessError:
        raise
    except Exception as exc:
        logger.exception("Unexpected error in %s", endpoint)
        raise ReadinessError("unexpected", f"Failed to compute {endpoint}") from exc
