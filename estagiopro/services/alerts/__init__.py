"""Internship expiration alerts: sweep engine, link notifier, and scheduler."""

from estagiopro.services.alerts.engine import AlertEngine, SendResult, alert_engine_for
from estagiopro.services.alerts.errors import (
    AlertError,
    AlertNotFoundError,
    InternshipNotFoundError,
)
from estagiopro.services.alerts.notifier import InvalidPhoneError, WhatsAppLinkNotifier
from estagiopro.services.alerts.repository import AlertRepository, Contact, InternshipRecord
from estagiopro.services.alerts.scheduler import AlertScheduler, SchedulerState

__all__ = [
    "AlertEngine",
    "AlertError",
    "AlertNotFoundError",
    "AlertRepository",
    "AlertScheduler",
    "Contact",
    "InternshipNotFoundError",
    "InternshipRecord",
    "InvalidPhoneError",
    "SchedulerState",
    "SendResult",
    "WhatsAppLinkNotifier",
    "alert_engine_for",
]
