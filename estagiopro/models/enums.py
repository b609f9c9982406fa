"""Enumerations shared by models, services, and schemas."""

from __future__ import annotations

from enum import Enum


class InternshipType(str, Enum):
    """Internship category. Each lives in its own table."""

    MANDATORY = "mandatory"
    NON_MANDATORY = "non_mandatory"

    @property
    def label(self) -> str:
        """pt-BR label used in alert titles."""
        return "Obrigatório" if self is InternshipType.MANDATORY else "Não Obrigatório"


class InternshipStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class AlertType(str, Enum):
    """Kinds of internship alert. Stored as plain text so new members need no migration."""

    EXPIRATION_WARNING = "expiration_warning"


class AlertState(str, Enum):
    """Alert lifecycle. ``status`` on the row mirrors this value."""

    PENDING = "pending"
    SENT = "sent"
    READ = "read"
    DISMISSED = "dismissed"


class RecipientKind(str, Enum):
    """Who receives a manually dispatched alert."""

    STUDENT = "student"
    ADVISOR = "advisor"
    BOTH = "both"
