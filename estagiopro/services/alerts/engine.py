"""Internship expiration alerts.

A sweep looks at both internship tables for records ending within the alert
window (30 days by default). It creates one ``expiration_warning`` alert per
record unless an undispatched one already exists, then dispatches it to the
advisor as a WhatsApp link.

"Sent" only means a link was generated and stored. Delivery is never confirmed.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from estagiopro.config import get_settings
from estagiopro.models import (
    AlertState,
    AlertType,
    InternshipAlert,
    InternshipType,
    RecipientKind,
)
from estagiopro.services.alerts.errors import AlertNotFoundError, InternshipNotFoundError
from estagiopro.services.alerts.notifier import WhatsAppLinkNotifier
from estagiopro.services.alerts.repository import AlertRepository, Contact, InternshipRecord

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def days_until(end_date: datetime, now: datetime) -> int:
    """Whole days left, rounded up: 10 days 3 hours -> 11."""
    return math.ceil((end_date - now).total_seconds() / SECONDS_PER_DAY)


@dataclass
class SendResult:
    """Outcome of a manual dispatch."""

    message: str
    sent: list[str] = field(default_factory=list)
    links: list[str] = field(default_factory=list)


class AlertEngine:
    """Detects expiring internships and manages their alerts."""

    def __init__(
        self,
        repository: AlertRepository,
        notifier: WhatsAppLinkNotifier,
        clock: Callable[[], datetime] = utcnow,
        window_days: int = DEFAULT_WINDOW_DAYS,
        display_timezone: str = "America/Sao_Paulo",
    ) -> None:
        self.repository = repository
        self.notifier = notifier
        self.clock = clock
        self.window_days = window_days
        self.display_tz = ZoneInfo(display_timezone)

    # ── Sweep ───────────────────────────────────────────────────────

    def check_expiring(self) -> dict:
        """Run one sweep over mandatory and non-mandatory internships.

        Failures are isolated per record (and per category when the listing
        itself fails); the sweep always finishes.

        Returns:
            dict with status, alerts_created, internships_scanned, alerts_dispatched.
        """
        now = self.clock()
        threshold = now + timedelta(days=self.window_days)

        created = 0
        dispatched = 0
        scanned = 0
        for internship_type in (InternshipType.MANDATORY, InternshipType.NON_MANDATORY):
            try:
                records = self.repository.list_expiring(internship_type, now, threshold)
            except Exception:
                logger.exception("Failed to list expiring %s internships", internship_type.value)
                self.repository.rollback()
                continue

            scanned += len(records)
            for record in records:
                try:
                    alert = self._create_alert_if_absent(record, now)
                    if alert is None:
                        continue
                    created += 1
                    if self.dispatch_notification(alert, record.advisor, RecipientKind.ADVISOR):
                        dispatched += 1
                except Exception:
                    logger.exception(
                        "Expiration alert failed: internship_type=%s internship_id=%s",
                        internship_type.value,
                        record.id,
                    )
                    self.repository.rollback()

        logger.info(
            "Expiration sweep completed: scanned=%d alerts_created=%d alerts_dispatched=%d",
            scanned,
            created,
            dispatched,
        )
        return {
            "status": "completed",
            "alerts_created": created,
            "internships_scanned": scanned,
            "alerts_dispatched": dispatched,
        }

    def _create_alert_if_absent(
        self, record: InternshipRecord, now: datetime
    ) -> InternshipAlert | None:
        alert_type = AlertType.EXPIRATION_WARNING.value
        existing = self.repository.find_pending_alert(
            record.id, record.internship_type.value, alert_type
        )
        if existing is not None:
            logger.debug(
                "Pending alert already exists: internship_id=%s alert_id=%s",
                record.id,
                existing.id,
            )
            return None

        days = days_until(record.end_date, now)
        alert = InternshipAlert(
            internship_id=record.id,
            internship_type=record.internship_type.value,
            alert_type=alert_type,
            title=self._expiration_title(record.internship_type),
            message=self._expiration_message(record, days),
            days_until_expiration=days,
            target_users=[record.advisor.id],
            status=AlertState.PENDING.value,
            is_active=True,
        )
        try:
            alert = self.repository.insert_alert(alert)
        except IntegrityError:
            # A concurrent sweep inserted the same pending alert first
            self.repository.rollback()
            logger.info("Pending alert created concurrently: internship_id=%s", record.id)
            return None

        logger.info(
            "Alert created: internship_type=%s internship_id=%s days_until_expiration=%d",
            record.internship_type.value,
            record.id,
            days,
        )
        return alert

    @staticmethod
    def _expiration_title(internship_type: InternshipType) -> str:
        return f"Estágio {internship_type.label} Próximo ao Vencimento"

    def _expiration_message(self, record: InternshipRecord, days: int) -> str:
        end_date = record.end_date.astimezone(self.display_tz).strftime("%d/%m/%Y")
        return (
            f"O estágio do estudante {record.student.name} "
            f"({record.student.registration_number}) está próximo ao vencimento. "
            f"Data de término: {end_date}. Restam {days} dias."
        )

    # ── Dispatch ────────────────────────────────────────────────────

    def dispatch_notification(
        self,
        alert: InternshipAlert,
        recipient: Contact,
        recipient_kind: RecipientKind,
    ) -> str | None:
        """Generate the WhatsApp link for one recipient and mark the alert sent.

        Returns the link, or None when the recipient has no phone on file.
        Errors from link generation or storage propagate to the caller.
        """
        if not recipient.phone:
            logger.info(
                "No phone on file for %s %s; alert %s not dispatched",
                recipient_kind.value,
                recipient.name,
                alert.id,
            )
            return None

        link = self.notifier.build_link(recipient.phone, alert.title, alert.message)

        fields: dict = {"whatsapp_message_id": link}
        if alert.sent_at is None:
            fields["sent_at"] = self.clock()
        self._apply(alert.id, **fields)

        logger.info(
            "WhatsApp link generated: alert_id=%s recipient=%s %s",
            alert.id,
            recipient_kind.value,
            recipient.name,
        )
        return link

    def send_for_alert(self, alert_id: str, recipient_kind: RecipientKind | str) -> SendResult:
        """Dispatch an existing alert on demand to the student, the advisor, or both.

        Unknown alerts or internships raise; recipients without a phone or whose
        link fails are left out of ``sent``.
        """
        kind = RecipientKind(recipient_kind)
        alert = self.repository.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        record = self.repository.get_internship(alert.internship_id, alert.internship_type)
        if record is None:
            raise InternshipNotFoundError(alert.internship_id, alert.internship_type)

        recipients: list[tuple[RecipientKind, Contact, str]] = []
        if kind in (RecipientKind.STUDENT, RecipientKind.BOTH):
            recipients.append(
                (RecipientKind.STUDENT, record.student, f"Estudante: {record.student.name}")
            )
        if kind in (RecipientKind.ADVISOR, RecipientKind.BOTH):
            recipients.append(
                (RecipientKind.ADVISOR, record.advisor, f"Orientador: {record.advisor.name}")
            )

        result = SendResult(message="")
        for recipient_kind_, contact, description in recipients:
            try:
                link = self.dispatch_notification(alert, contact, recipient_kind_)
            except Exception:
                logger.exception(
                    "WhatsApp link failed: alert_id=%s recipient=%s",
                    alert.id,
                    description,
                )
                self.repository.rollback()
                continue
            if link is not None:
                result.sent.append(description)
                result.links.append(link)

        if result.sent:
            result.message = f"WhatsApp gerado para {len(result.sent)} destinatário(s)."
        else:
            result.message = "Nenhum destinatário com telefone cadastrado."
        return result

    # ── Queries and user actions ────────────────────────────────────

    def get_active_alerts(self, user_id: str | None = None) -> list[InternshipAlert]:
        return self.repository.list_active_alerts(user_id)

    def mark_alert_as_read(self, alert_id: str, user_id: str | None = None) -> InternshipAlert:
        """Set ``read_at`` once; repeating the call keeps the first timestamp."""
        alert = self.repository.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        if alert.read_at is None:
            alert = self._apply(alert_id, read_at=self.clock())
        logger.info("Alert read: alert_id=%s user_id=%s", alert_id, user_id)
        return alert

    def dismiss_alert(self, alert_id: str, user_id: str | None = None) -> InternshipAlert:
        """Set ``dismissed_at`` once and deactivate the alert."""
        alert = self.repository.get_alert(alert_id)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        fields: dict = {"is_active": False}
        if alert.dismissed_at is None:
            fields["dismissed_at"] = self.clock()
        alert = self._apply(alert_id, **fields)
        logger.info("Alert dismissed: alert_id=%s user_id=%s", alert_id, user_id)
        return alert

    def _apply(self, alert_id: str, **fields) -> InternshipAlert:
        """Write lifecycle fields and keep ``status`` in step with the derived state."""
        alert = self.repository.update_alert(alert_id, **fields)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        if alert.status != alert.state.value:
            alert = self.repository.update_alert(alert_id, status=alert.state.value)
        return alert

    def run_manual_check(self) -> dict:
        """Run a sweep and report how many active alerts it added."""
        logger.info("Running manual expiration alert check")
        initial_count = self.repository.count_active_alerts()
        self.check_expiring()
        final_count = self.repository.count_active_alerts()
        alerts_created = final_count - initial_count
        return {
            "message": f"Verificação concluída. {alerts_created} novos alertas criados.",
            "alerts_created": alerts_created,
        }


def alert_engine_for(db: Session, clock: Callable[[], datetime] = utcnow) -> AlertEngine:
    """Build an engine on a session using the configured window and country code."""
    settings = get_settings()
    return AlertEngine(
        AlertRepository(db),
        WhatsAppLinkNotifier(settings.whatsapp_country_code),
        clock=clock,
        window_days=settings.alert_window_days,
        display_timezone=settings.alert_display_timezone,
    )
