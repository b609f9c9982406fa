"""Mandatory and non-mandatory internship models.

Both categories share the same columns and are administered separately, so
each gets its own table built from a common mixin.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from estagiopro.db.session import Base
from estagiopro.models.enums import InternshipStatus, InternshipType


class InternshipColumnsMixin:
    """Columns common to both internship tables."""

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    student_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("students.id"), nullable=False, index=True
    )
    advisor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("advisors.id"), nullable=False, index=True
    )
    supervisor: Mapped[str | None] = mapped_column(Text, nullable=True)
    workload: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(
        Text, default=InternshipStatus.PENDING.value, nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @declared_attr
    def student(cls) -> Mapped["Student"]:
        return relationship("Student")

    @declared_attr
    def advisor(cls) -> Mapped["Advisor"]:
        return relationship("Advisor")


class MandatoryInternship(InternshipColumnsMixin, Base):
    """Curricular (mandatory) internship."""

    __tablename__ = "mandatory_internships"

    internship_type = InternshipType.MANDATORY


class NonMandatoryInternship(InternshipColumnsMixin, Base):
    """Elective (non-mandatory) internship."""

    __tablename__ = "non_mandatory_internships"

    internship_type = InternshipType.NON_MANDATORY


INTERNSHIP_MODELS: dict[InternshipType, type[InternshipColumnsMixin]] = {
    InternshipType.MANDATORY: MandatoryInternship,
    InternshipType.NON_MANDATORY: NonMandatoryInternship,
}
