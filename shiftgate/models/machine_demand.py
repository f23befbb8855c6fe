"""MachineDemand model: generated staffing demand rows per station and shift."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shiftgate.db.session import Base


class MachineDemand(Base):
    """Demand row produced by the planning step; presence means gaps were generated."""

    __tablename__ = "machine_demand"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    station_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("stations.id", ondelete="CASCADE"), nullable=True
    )
    plan_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    shift_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    required_headcount: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
