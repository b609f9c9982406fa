"""Alert schemas for request/response validation."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AlertRead(BaseModel):
    """Schema for an alert in list responses."""

    id: str
    internship_id: str
    internship_type: str
    alert_type: str
    status: str
    title: str
    message: str
    days_until_expiration: int | None
    target_users: list[str]
    whatsapp_message_id: str | None
    sent_at: datetime | None
    read_at: datetime | None
    dismissed_at: datetime | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SendWhatsAppResponse(BaseModel):
    """Outcome of a manual WhatsApp dispatch."""

    message: str
    sent: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)


class ManualCheckResponse(BaseModel):
    """Outcome of an on-demand expiration check."""

    message: str
    alerts_created: int
