"""Internship alert API routes.

End-user sessions are handled by the gateway in front of this service; it
calls these routes with the service token and, when acting for a user, the
``X-User-Id`` header.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from estagiopro.api.deps import get_acting_user_id, get_alert_engine, require_internal_token
from estagiopro.models import RecipientKind
from estagiopro.schemas.alert import AlertRead, ManualCheckResponse, SendWhatsAppResponse
from estagiopro.services.alerts import (
    AlertEngine,
    AlertNotFoundError,
    InternshipNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_internal_token)])


@router.get("", response_model=list[AlertRead])
def api_list_active_alerts(
    user_id: str | None = Query(None, description="Only alerts targeting this user"),
    engine: AlertEngine = Depends(get_alert_engine),
) -> list[AlertRead]:
    """List active, non-dismissed alerts, newest first."""
    alerts = engine.get_active_alerts(user_id)
    return [AlertRead.model_validate(a) for a in alerts]


@router.post("/check", response_model=ManualCheckResponse)
def api_run_manual_check(
    engine: AlertEngine = Depends(get_alert_engine),
) -> ManualCheckResponse:
    """Run the expiration sweep now and report how many alerts it created."""
    result = engine.run_manual_check()
    return ManualCheckResponse(**result)


@router.post("/{alert_id}/read", status_code=204)
def api_mark_alert_as_read(
    alert_id: str,
    engine: AlertEngine = Depends(get_alert_engine),
    user_id: str | None = Depends(get_acting_user_id),
) -> None:
    """Mark an alert as read."""
    try:
        engine.mark_alert_as_read(alert_id, user_id)
    except AlertNotFoundError:
        raise HTTPException(status_code=404, detail="Alert not found") from None


@router.post("/{alert_id}/dismiss", status_code=204)
def api_dismiss_alert(
    alert_id: str,
    engine: AlertEngine = Depends(get_alert_engine),
    user_id: str | None = Depends(get_acting_user_id),
) -> None:
    """Dismiss an alert so it no longer shows as active."""
    try:
        engine.dismiss_alert(alert_id, user_id)
    except AlertNotFoundError:
        raise HTTPException(status_code=404, detail="Alert not found") from None


@router.post("/{alert_id}/whatsapp", response_model=SendWhatsAppResponse)
def api_send_whatsapp_for_alert(
    alert_id: str,
    recipient: RecipientKind = Query(RecipientKind.ADVISOR),
    engine: AlertEngine = Depends(get_alert_engine),
) -> SendWhatsAppResponse:
    """Generate WhatsApp links for an alert's student, advisor, or both."""
    try:
        result = engine.send_for_alert(alert_id, recipient)
    except AlertNotFoundError:
        raise HTTPException(status_code=404, detail="Alert not found") from None
    except InternshipNotFoundError:
        logger.warning("Alert %s points at a missing internship", alert_id)
        raise HTTPException(status_code=404, detail="Internship not found") from None
    return SendWhatsAppResponse(message=result.message, sent=result.sent, links=result.links)
