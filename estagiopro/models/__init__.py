"""SQLAlchemy models."""

from estagiopro.models.advisor import Advisor
from estagiopro.models.alert import InternshipAlert
from estagiopro.models.enums import (
    AlertState,
    AlertType,
    InternshipStatus,
    InternshipType,
    RecipientKind,
)
from estagiopro.models.internship import (
    INTERNSHIP_MODELS,
    MandatoryInternship,
    NonMandatoryInternship,
)
from estagiopro.models.student import Student

__all__ = [
    "Advisor",
    "AlertState",
    "AlertType",
    "INTERNSHIP_MODELS",
    "InternshipAlert",
    "InternshipStatus",
    "InternshipType",
    "MandatoryInternship",
    "NonMandatoryInternship",
    "RecipientKind",
    "Student",
]
