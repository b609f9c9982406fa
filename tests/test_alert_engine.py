"""Tests for the internship expiration alert engine."""

from __future__ import annotations

import re
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from estagiopro.models import AlertState, InternshipAlert, InternshipType, RecipientKind
from estagiopro.services.alerts import (
    AlertEngine,
    AlertNotFoundError,
    AlertRepository,
    Contact,
    InternshipNotFoundError,
    InternshipRecord,
    WhatsAppLinkNotifier,
)
from estagiopro.services.alerts.engine import days_until
from tests.test_constants import NOW

LINK_RE = re.compile(r"^https://api\.whatsapp\.com/send\?phone=(\d+)&text=(.+)$")


@pytest.fixture
def engine(db: Session, clock) -> AlertEngine:
    return AlertEngine(AlertRepository(db), WhatsAppLinkNotifier("55"), clock=clock)


def _alerts(db: Session) -> list[InternshipAlert]:
    return db.query(InternshipAlert).order_by(InternshipAlert.created_at).all()


class TestDaysUntil:
    def test_rounds_partial_days_up(self) -> None:
        """10 days 3 hours -> 11."""
        assert days_until(NOW + timedelta(days=10, hours=3), NOW) == 11

    def test_whole_days_exact(self) -> None:
        assert days_until(NOW + timedelta(days=5), NOW) == 5

    def test_same_instant_is_zero(self) -> None:
        assert days_until(NOW, NOW) == 0


class TestCheckExpiring:
    """Sweep over both internship tables."""

    def test_end_to_end_advisor_alert(self, db: Session, engine, make_internship) -> None:
        """Maria Silva's mandatory internship ends in 5 days: one alert, sent to the advisor."""
        internship = make_internship(
            NOW + timedelta(days=5),
            student_name="Maria Silva",
            registration_number="2021001",
            advisor_phone="38999991234",
        )

        result = engine.check_expiring()

        assert result["status"] == "completed"
        assert result["alerts_created"] == 1
        assert result["alerts_dispatched"] == 1
        alerts = _alerts(db)
        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.internship_id == internship.id
        assert alert.internship_type == "mandatory"
        assert alert.alert_type == "expiration_warning"
        assert alert.days_until_expiration == 5
        assert alert.target_users == [internship.advisor_id]
        assert alert.status == "sent"
        assert alert.sent_at is not None
        assert alert.title == "Estágio Obrigatório Próximo ao Vencimento"
        assert "Maria Silva (2021001)" in alert.message
        assert "Data de término: 23/10/2026" in alert.message
        assert alert.message.endswith("Restam 5 dias.")
        match = LINK_RE.match(alert.whatsapp_message_id)
        assert match is not None
        assert match.group(1) == "5538999991234"

    def test_non_mandatory_title(self, db: Session, engine, make_internship) -> None:
        make_internship(NOW + timedelta(days=3), internship_type=InternshipType.NON_MANDATORY)

        engine.check_expiring()

        alert = _alerts(db)[0]
        assert alert.internship_type == "non_mandatory"
        assert alert.title == "Estágio Não Obrigatório Próximo ao Vencimento"

    def test_days_until_expiration_uses_ceiling(self, db: Session, engine, make_internship) -> None:
        make_internship(NOW + timedelta(days=10, hours=3))

        engine.check_expiring()

        assert _alerts(db)[0].days_until_expiration == 11

    def test_window_bounds_are_inclusive(self, db: Session, engine, make_internship) -> None:
        """Exactly now and exactly 30 days out are included; just outside is not."""
        at_now = make_internship(NOW)
        at_limit = make_internship(NOW + timedelta(days=30))
        make_internship(NOW + timedelta(days=30, seconds=1))
        make_internship(NOW - timedelta(seconds=1))
        make_internship(NOW - timedelta(days=2))
        make_internship(None)

        result = engine.check_expiring()

        assert result["internships_scanned"] == 2
        assert result["alerts_created"] == 2
        alerted = {a.internship_id for a in _alerts(db)}
        assert alerted == {at_now.id, at_limit.id}

    def test_scans_both_categories(self, db: Session, engine, make_internship) -> None:
        m = make_internship(NOW + timedelta(days=7), internship_type=InternshipType.MANDATORY)
        n = make_internship(NOW + timedelta(days=7), internship_type=InternshipType.NON_MANDATORY)

        result = engine.check_expiring()

        assert result["alerts_created"] == 2
        keys = {(a.internship_id, a.internship_type) for a in _alerts(db)}
        assert keys == {(m.id, "mandatory"), (n.id, "non_mandatory")}

    def test_no_duplicate_while_pending(self, db: Session, engine, make_internship) -> None:
        """Second sweep does not re-alert an internship whose alert was never dispatched."""
        make_internship(NOW + timedelta(days=10), advisor_phone=None)

        first = engine.check_expiring()
        second = engine.check_expiring()

        assert first["alerts_created"] == 1
        assert second["alerts_created"] == 0
        alerts = _alerts(db)
        assert len(alerts) == 1
        assert alerts[0].status == "pending"

    def test_dispatched_alert_does_not_block_next_warning(
        self, db: Session, engine, make_internship, clock
    ) -> None:
        """Dedup only looks at undispatched alerts; a sent one allows a new warning."""
        make_internship(NOW + timedelta(days=10))

        engine.check_expiring()
        clock.advance(timedelta(days=1))
        result = engine.check_expiring()

        assert result["alerts_created"] == 1
        days = sorted(a.days_until_expiration for a in _alerts(db))
        assert days == [9, 10]

    def test_missing_phone_leaves_alert_pending(self, db: Session, engine, make_internship) -> None:
        """Advisor A without phone, advisor B with phone: both alerted, only B sent."""
        a = make_internship(NOW + timedelta(days=4), advisor_phone=None)
        b = make_internship(NOW + timedelta(days=6), advisor_phone="(38) 98888-7777")

        result = engine.check_expiring()

        assert result["alerts_created"] == 2
        assert result["alerts_dispatched"] == 1
        by_internship = {alert.internship_id: alert for alert in _alerts(db)}
        assert by_internship[a.id].status == "pending"
        assert by_internship[a.id].sent_at is None
        assert by_internship[a.id].whatsapp_message_id is None
        assert by_internship[b.id].status == "sent"
        assert by_internship[b.id].sent_at is not None

    def test_bad_phone_does_not_stop_sweep(self, db: Session, engine, make_internship) -> None:
        """A phone with no digits fails link generation for that record only."""
        bad = make_internship(NOW + timedelta(days=2), advisor_phone="n/a")
        good = make_internship(NOW + timedelta(days=8), advisor_phone="38999991234")

        result = engine.check_expiring()

        assert result["status"] == "completed"
        by_internship = {alert.internship_id: alert for alert in _alerts(db)}
        assert by_internship[bad.id].status == "pending"
        assert by_internship[good.id].status == "sent"

    def test_empty_tables(self, engine) -> None:
        result = engine.check_expiring()
        assert result == {
            "status": "completed",
            "alerts_created": 0,
            "internships_scanned": 0,
            "alerts_dispatched": 0,
        }


def _record(internship_type: InternshipType = InternshipType.NON_MANDATORY) -> InternshipRecord:
    return InternshipRecord(
        id="int-1",
        internship_type=internship_type,
        student=Contact(id="stu-1", name="Ana", registration_number="2020123"),
        advisor=Contact(id="adv-1", name="Prof. Lima", phone=None),
        end_date=NOW + timedelta(days=3),
    )


class TestCheckExpiringWithMockRepository:
    """Storage failures stay inside the sweep."""

    def test_listing_failure_skips_only_that_category(self, clock) -> None:
        repo = MagicMock(spec=AlertRepository)
        repo.list_expiring.side_effect = [RuntimeError("connection reset"), [_record()]]
        repo.find_pending_alert.return_value = None
        repo.insert_alert.side_effect = lambda alert: alert

        engine = AlertEngine(repo, WhatsAppLinkNotifier(), clock=clock)
        result = engine.check_expiring()

        assert result["status"] == "completed"
        assert result["alerts_created"] == 1
        repo.rollback.assert_called_once()
        inserted = repo.insert_alert.call_args[0][0]
        assert inserted.target_users == ["adv-1"]
        assert inserted.days_until_expiration == 3

    def test_insert_conflict_counts_as_duplicate(self, clock) -> None:
        repo = MagicMock(spec=AlertRepository)
        repo.list_expiring.side_effect = [[_record(InternshipType.MANDATORY)], []]
        repo.find_pending_alert.return_value = None
        repo.insert_alert.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        engine = AlertEngine(repo, WhatsAppLinkNotifier(), clock=clock)
        result = engine.check_expiring()

        assert result["alerts_created"] == 0
        repo.rollback.assert_called_once()

    def test_record_failure_does_not_propagate(self, clock) -> None:
        repo = MagicMock(spec=AlertRepository)
        repo.list_expiring.side_effect = [[_record(InternshipType.MANDATORY)], [_record()]]
        repo.find_pending_alert.side_effect = [RuntimeError("deadlock"), None]
        repo.insert_alert.side_effect = lambda alert: alert

        engine = AlertEngine(repo, WhatsAppLinkNotifier(), clock=clock)
        result = engine.check_expiring()

        assert result["internships_scanned"] == 2
        assert result["alerts_created"] == 1


class TestSendForAlert:
    """Manual dispatch to student, advisor, or both."""

    def _pending_alert(self, db: Session, engine, make_internship, **kwargs) -> InternshipAlert:
        make_internship(NOW + timedelta(days=12), advisor_phone=None, **kwargs)
        engine.check_expiring()
        return _alerts(db)[0]

    def test_both_recipients(self, db: Session, engine, make_internship) -> None:
        make_internship(
            NOW + timedelta(days=12),
            student_name="Maria Silva",
            student_phone="38911112222",
            advisor_name="Prof. Souza",
            advisor_phone="38933334444",
        )
        engine.check_expiring()
        alert = _alerts(db)[0]

        result = engine.send_for_alert(alert.id, RecipientKind.BOTH)

        assert result.sent == ["Estudante: Maria Silva", "Orientador: Prof. Souza"]
        assert result.message == "WhatsApp gerado para 2 destinatário(s)."
        phones = [LINK_RE.match(link).group(1) for link in result.links]
        assert phones == ["5538911112222", "5538933334444"]

    def test_recipient_without_phone_is_omitted(
        self, db: Session, engine, make_internship
    ) -> None:
        alert = self._pending_alert(
            db, engine, make_internship, student_name="Joana", student_phone="38955556666"
        )

        result = engine.send_for_alert(alert.id, "both")

        assert result.sent == ["Estudante: Joana"]
        db.refresh(alert)
        assert alert.status == "sent"
        assert alert.sent_at is not None
        assert alert.whatsapp_message_id == result.links[0]

    def test_no_phones(self, db: Session, engine, make_internship) -> None:
        alert = self._pending_alert(db, engine, make_internship)

        result = engine.send_for_alert(alert.id, RecipientKind.ADVISOR)

        assert result.sent == []
        assert result.links == []
        assert result.message == "Nenhum destinatário com telefone cadastrado."
        db.refresh(alert)
        assert alert.status == "pending"

    def test_keeps_first_sent_at(self, db: Session, engine, make_internship, clock) -> None:
        make_internship(NOW + timedelta(days=12), student_phone="38911112222")
        engine.check_expiring()
        alert = _alerts(db)[0]
        first_sent_at = alert.sent_at

        clock.advance(timedelta(hours=2))
        engine.send_for_alert(alert.id, RecipientKind.STUDENT)

        db.refresh(alert)
        assert alert.sent_at == first_sent_at

    def test_unknown_alert_raises(self, engine) -> None:
        with pytest.raises(AlertNotFoundError):
            engine.send_for_alert("missing", RecipientKind.BOTH)

    def test_missing_internship_raises(self, db: Session, engine) -> None:
        alert = InternshipAlert(
            internship_id="gone",
            internship_type="mandatory",
            alert_type="expiration_warning",
            title="t",
            message="m",
            target_users=["adv"],
        )
        db.add(alert)
        db.commit()

        with pytest.raises(InternshipNotFoundError):
            engine.send_for_alert(alert.id, RecipientKind.ADVISOR)

    def test_invalid_recipient_kind(self, db: Session, engine, make_internship) -> None:
        alert = self._pending_alert(db, engine, make_internship)
        with pytest.raises(ValueError):
            engine.send_for_alert(alert.id, "coordinator")


class TestAlertLifecycle:
    """Active listing, read, dismiss, and manual check."""

    def test_get_active_filters_by_target_user(
        self, db: Session, engine, make_internship
    ) -> None:
        first = make_internship(NOW + timedelta(days=5))
        make_internship(NOW + timedelta(days=6))
        engine.check_expiring()

        assert len(engine.get_active_alerts()) == 2
        mine = engine.get_active_alerts(first.advisor_id)
        assert [a.internship_id for a in mine] == [first.id]
        assert engine.get_active_alerts("nobody") == []

    def test_mark_read_keeps_first_timestamp(
        self, db: Session, engine, make_internship, clock
    ) -> None:
        make_internship(NOW + timedelta(days=5))
        engine.check_expiring()
        alert = _alerts(db)[0]

        first = engine.mark_alert_as_read(alert.id, "adv-user").read_at
        clock.advance(timedelta(hours=1))
        second = engine.mark_alert_as_read(alert.id, "adv-user").read_at

        assert first is not None
        assert second == first
        assert alert.state is AlertState.READ
        assert alert.status == "read"
        # Read alerts are still active
        assert len(engine.get_active_alerts()) == 1

    def test_dismiss_hides_alert(self, db: Session, engine, make_internship) -> None:
        make_internship(NOW + timedelta(days=5))
        engine.check_expiring()
        alert = _alerts(db)[0]

        engine.dismiss_alert(alert.id, "adv-user")
        engine.dismiss_alert(alert.id, "adv-user")

        db.refresh(alert)
        assert alert.dismissed_at is not None
        assert alert.is_active is False
        assert alert.status == "dismissed"
        assert engine.get_active_alerts() == []

    def test_read_and_dismiss_unknown_alert(self, engine) -> None:
        with pytest.raises(AlertNotFoundError):
            engine.mark_alert_as_read("missing")
        with pytest.raises(AlertNotFoundError):
            engine.dismiss_alert("missing")

    def test_run_manual_check_reports_created(self, engine, make_internship) -> None:
        make_internship(NOW + timedelta(days=5))
        make_internship(NOW + timedelta(days=20), internship_type=InternshipType.NON_MANDATORY)

        result = engine.run_manual_check()

        assert result == {
            "message": "Verificação concluída. 2 novos alertas criados.",
            "alerts_created": 2,
        }

    def test_run_manual_check_nothing_to_do(self, engine, make_internship) -> None:
        make_internship(NOW + timedelta(days=45))

        result = engine.run_manual_check()

        assert result["alerts_created"] == 0
        assert result["message"] == "Verificação concluída. 0 novos alertas criados."
