"""Internal job endpoints for cron/scripts.

These endpoints are secured with a static token (X-Internal-Token header).
They are meant for automated triggers only.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from estagiopro.api.deps import require_internal_token
from estagiopro.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal", include_in_schema=False)


@router.post("/run_alert_check")
async def run_alert_check(
    db: Session = Depends(get_db),
    _token: None = Depends(require_internal_token),
):
    """Trigger the internship expiration sweep.

    Returns alerts_created, internships_scanned, alerts_dispatched.
    """
    from estagiopro.services.alerts import alert_engine_for

    try:
        result = alert_engine_for(db).check_expiring()
        return {
            "status": result["status"],
            "alerts_created": result["alerts_created"],
            "internships_scanned": result["internships_scanned"],
            "alerts_dispatched": result["alerts_dispatched"],
        }
    except Exception as exc:
        logger.exception("Internal alert check failed")
        return {"status": "failed", "error": str(exc)}


@router.get("/alert_scheduler")
async def alert_scheduler_status(
    request: Request,
    _token: None = Depends(require_internal_token),
):
    """Report whether the in-process alert scheduler is running."""
    scheduler = getattr(request.app.state, "alert_scheduler", None)
    if scheduler is None:
        return {"state": "disabled"}
    return {
        "state": scheduler.state.value,
        "fire_count": scheduler.fire_count,
        "last_result": scheduler.last_result,
    }
