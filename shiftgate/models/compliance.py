"""Compliance catalog, applicability rules and per-employee compliance records."""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from shiftgate.db.session import Base


class ComplianceCatalog(Base):
    """Compliance requirement catalog item (certificate, medical check, training)."""

    __tablename__ = "compliance_catalog"

    __table_args__ = (UniqueConstraint("org_id", "code", name="uq_compliance_catalog_org_code"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False)
    code: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ComplianceApplicability(Base):
    """Applicability rule: requirement binds a line, a role, or everyone.

    A requirement with no rules binds everyone.
    """

    __tablename__ = "compliance_requirement_applicability"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    compliance_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("compliance_catalog.id", ondelete="CASCADE"), nullable=False
    )
    applies_to_line: Mapped[str | None] = mapped_column(String(64), nullable=True)
    applies_to_role: Mapped[str | None] = mapped_column(String(64), nullable=True)
    applies_globally: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class EmployeeCompliance(Base):
    """Asserted compliance for (employee, requirement): validity date and waiver."""

    __tablename__ = "employee_compliance"

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "compliance_id", name="uq_employee_compliance_employee_compliance"
        ),
        Index("ix_employee_compliance_org_employee", "org_id", "employee_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    org_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False
    )
    compliance_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("compliance_catalog.id", ondelete="CASCADE"), nullable=False
    )
    valid_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    waived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
