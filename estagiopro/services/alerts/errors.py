"""Alert service errors."""

from __future__ import annotations


class AlertError(Exception):
    """Base class for alert service failures."""


class AlertNotFoundError(AlertError, LookupError):
    """Raised when an alert id does not exist."""

    def __init__(self, alert_id: str) -> None:
        super().__init__(f"Alert not found: {alert_id}")
        self.alert_id = alert_id


class InternshipNotFoundError(AlertError, LookupError):
    """Raised when an alert points at an internship that no longer exists."""

    def __init__(self, internship_id: str, internship_type: str) -> None:
        super().__init__(f"Internship not found: {internship_type}/{internship_id}")
        self.internship_id = internship_id
        self.internship_type = internship_type
