"""Session-owning entry points for cron, scripts, and the scheduler."""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.orm import Session

from estagiopro.db.session import SessionLocal
from estagiopro.services.alerts.engine import alert_engine_for


def run_alert_check(session_factory: Callable[[], Session] = SessionLocal) -> dict:
    """Run one manual-style check on a fresh session and close it afterwards.

    Returns:
        dict with message and alerts_created.
    """
    db = session_factory()
    try:
        return alert_engine_for(db).run_manual_check()
    finally:
        db.close()


def run_expiration_sweep(session_factory: Callable[[], Session] = SessionLocal) -> dict:
    """Run one sweep on a fresh session and return its summary.

    Returns:
        dict with status, alerts_created, internships_scanned, alerts_dispatched.
    """
    db = session_factory()
    try:
        return alert_engine_for(db).check_expiring()
    finally:
        db.close()
