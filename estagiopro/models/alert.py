"""Internship alert model — expiration warnings and their delivery lifecycle."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from estagiopro.db.session import Base
from estagiopro.models.enums import AlertState


class InternshipAlert(Base):
    """Alert raised for a mandatory or non-mandatory internship.

    ``internship_id`` is not a foreign key: the two internship kinds live in
    separate tables and ``internship_type`` says which one to look in.
    """

    __tablename__ = "internship_alerts"

    __table_args__ = (
        # At most one undispatched alert per internship and alert type
        Index(
            "uq_internship_alerts_pending",
            "internship_id",
            "internship_type",
            "alert_type",
            unique=True,
            postgresql_where=text("sent_at IS NULL"),
            sqlite_where=text("sent_at IS NULL"),
        ),
        Index("ix_internship_alerts_active", "is_active", "dismissed_at"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    internship_id: Mapped[str] = mapped_column(String(36), nullable=False)
    internship_type: Mapped[str] = mapped_column(Text, nullable=False)
    alert_type: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    days_until_expiration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    target_users: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"), default=list, nullable=False
    )
    status: Mapped[str] = mapped_column(
        Text, default=AlertState.PENDING.value, nullable=False
    )
    whatsapp_message_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    dismissed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def state(self) -> AlertState:
        """Lifecycle state derived from the timestamps and the active flag."""
        if self.dismissed_at is not None or self.is_active is False:
            return AlertState.DISMISSED
        if self.read_at is not None:
            return AlertState.READ
        if self.sent_at is not None:
            return AlertState.SENT
        return AlertState.PENDING

    @property
    def is_pending(self) -> bool:
        """True while the alert has not been dispatched (the dedup key)."""
        return self.sent_at is None

    def targets(self, user_id: str) -> bool:
        return user_id in (self.target_users or [])
