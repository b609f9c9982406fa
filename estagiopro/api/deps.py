"""Shared FastAPI dependencies for API routes."""

from __future__ import annotations

import logging
import secrets

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from estagiopro.config import get_settings
from estagiopro.db.session import get_db  # re-export
from estagiopro.services.alerts import AlertEngine, alert_engine_for

logger = logging.getLogger(__name__)

__all__ = [
    "get_db",
    "get_alert_engine",
    "get_acting_user_id",
    "require_internal_token",
]


def require_internal_token(x_internal_token: str = Header(...)) -> None:
    """Validate the service token from the X-Internal-Token header.

    Uses constant-time comparison to prevent timing attacks.
    Raises 403 if the token is empty or does not match the configured value.
    """
    expected = get_settings().internal_job_token
    if not expected or not secrets.compare_digest(x_internal_token, expected):
        logger.warning("Service token auth failed: invalid or missing token")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid internal token")


def get_acting_user_id(x_user_id: str | None = Header(None)) -> str | None:
    """User on whose behalf the gateway is calling, if it said so."""
    if x_user_id is None or not x_user_id.strip():
        return None
    return x_user_id.strip()


def get_alert_engine(db: Session = Depends(get_db)) -> AlertEngine:
    """Alert engine bound to the request's session."""
    return alert_engine_for(db)
