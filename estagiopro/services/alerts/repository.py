"""SQLAlchemy-backed storage for the alert engine.

Reads internships joined with their student and advisor, and reads/writes
``internship_alerts`` rows. Every write commits; callers roll back through
``rollback()`` after a failed record so the session stays usable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session, joinedload

from estagiopro.models import (
    INTERNSHIP_MODELS,
    InternshipAlert,
    InternshipType,
)


@dataclass(frozen=True)
class Contact:
    """A person who may receive an alert link."""

    id: str
    name: str
    phone: str | None = None
    registration_number: str | None = None


@dataclass(frozen=True)
class InternshipRecord:
    """Read-only view of an internship with its student and advisor."""

    id: str
    internship_type: InternshipType
    student: Contact
    advisor: Contact
    end_date: datetime | None
    is_active: bool = True


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_record(row, internship_type: InternshipType) -> InternshipRecord:
    student = row.student
    advisor = row.advisor
    return InternshipRecord(
        id=row.id,
        internship_type=internship_type,
        student=Contact(
            id=student.id,
            name=student.name,
            phone=student.phone,
            registration_number=student.registration_number,
        ),
        advisor=Contact(id=advisor.id, name=advisor.name, phone=advisor.phone),
        end_date=as_utc(row.end_date),
        is_active=row.is_active,
    )


class AlertRepository:
    """Storage collaborator for ``AlertEngine``."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # ── Internships ─────────────────────────────────────────────────

    def list_expiring(
        self,
        internship_type: InternshipType,
        now: datetime,
        not_after: datetime,
    ) -> list[InternshipRecord]:
        """Internships of one kind with ``now <= end_date <= not_after`` (both inclusive)."""
        model = INTERNSHIP_MODELS[internship_type]
        rows = (
            self.db.query(model)
            .options(joinedload(model.student), joinedload(model.advisor))
            .filter(
                model.end_date.is_not(None),
                model.end_date >= now,
                model.end_date <= not_after,
            )
            .order_by(model.end_date)
            .all()
        )
        return [_to_record(row, internship_type) for row in rows]

    def list_expiring_mandatory(self, now: datetime, not_after: datetime) -> list[InternshipRecord]:
        return self.list_expiring(InternshipType.MANDATORY, now, not_after)

    def list_expiring_non_mandatory(
        self, now: datetime, not_after: datetime
    ) -> list[InternshipRecord]:
        return self.list_expiring(InternshipType.NON_MANDATORY, now, not_after)

    def get_internship(
        self, internship_id: str, internship_type: InternshipType | str
    ) -> InternshipRecord | None:
        try:
            kind = InternshipType(internship_type)
        except ValueError:
            return None
        model = INTERNSHIP_MODELS[kind]
        row = (
            self.db.query(model)
            .options(joinedload(model.student), joinedload(model.advisor))
            .filter(model.id == internship_id)
            .first()
        )
        if row is None:
            return None
        return _to_record(row, kind)

    # ── Alerts ──────────────────────────────────────────────────────

    def find_pending_alert(
        self, internship_id: str, internship_type: str, alert_type: str
    ) -> InternshipAlert | None:
        return (
            self.db.query(InternshipAlert)
            .filter(
                InternshipAlert.internship_id == internship_id,
                InternshipAlert.internship_type == internship_type,
                InternshipAlert.alert_type == alert_type,
                InternshipAlert.sent_at.is_(None),
            )
            .first()
        )

    def insert_alert(self, alert: InternshipAlert) -> InternshipAlert:
        self.db.add(alert)
        self.db.commit()
        self.db.refresh(alert)
        return alert

    def get_alert(self, alert_id: str) -> InternshipAlert | None:
        return self.db.query(InternshipAlert).filter(InternshipAlert.id == alert_id).first()

    def update_alert(self, alert_id: str, **fields) -> InternshipAlert | None:
        alert = self.get_alert(alert_id)
        if alert is None:
            return None
        for key, value in fields.items():
            setattr(alert, key, value)
        self.db.commit()
        self.db.refresh(alert)
        return alert

    def list_active_alerts(self, user_id: str | None = None) -> list[InternshipAlert]:
        """Alerts that are active and not dismissed, newest first.

        ``target_users`` is a JSON list, so the user filter runs in Python to
        stay portable across PostgreSQL and SQLite.
        """
        alerts = (
            self.db.query(InternshipAlert)
            .filter(
                InternshipAlert.is_active == True,  # noqa: E712
                InternshipAlert.dismissed_at.is_(None),
            )
            .order_by(InternshipAlert.created_at.desc())
            .all()
        )
        if user_id:
            return [a for a in alerts if a.targets(user_id)]
        return alerts

    def count_active_alerts(self) -> int:
        return (
            self.db.query(InternshipAlert)
            .filter(
                InternshipAlert.is_active == True,  # noqa: E712
                InternshipAlert.dismissed_at.is_(None),
            )
            .count()
        )

    def rollback(self) -> None:
        self.db.rollback()
