"""
Domain enums package.
"""

from .participant import ParticipantRole
from .visit import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    PaymentStatus,
    TreatmentCategory,
    VisitStatus,
)

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "ParticipantRole",
    "PaymentStatus",
    "TreatmentCategory",
    "VisitStatus",
]
