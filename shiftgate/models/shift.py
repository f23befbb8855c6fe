"""Shift and ShiftAssignment models: the roster for a (date, shift_code)."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shiftgate.db.session import Base


class Shift(Base):
    """Shift instance. site_id NULL means the shift is not site-specific."""

    __tablename__ = "shifts"

    __table_args__ = (Index("ix_shifts_org_date_code", "org_id", "shift_date", "shift_code"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    site_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("sites.id", ondelete="SET NULL"), nullable=True
    )
    shift_date: Mapped[date] = mapped_column(Date, nullable=False)
    shift_code: Mapped[str] = mapped_column(String(16), nullable=False)

    assignments: Mapped[list["ShiftAssignment"]] = relationship(
        "ShiftAssignment", back_populates="shift", cascade="all, delete-orphan"
    )


class ShiftAssignment(Base):
    """Station slot on a shift; employee_id NULL means the slot is unstaffed."""

    __tablename__ = "shift_assignments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    shift_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False
    )
    station_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("stations.id", ondelete="CASCADE"), nullable=False
    )
    employee_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True
    )

    shift: Mapped[Shift] = relationship("Shift", back_populates="assignments")
