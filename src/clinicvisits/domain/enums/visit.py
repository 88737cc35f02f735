"""Enumerations for visit status, payment state and treatment category."""

from enum import Enum


class VisitStatus(str, Enum):
    """Lifecycle status of a visit."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_active(self) -> bool:
        return self in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


ACTIVE_STATUSES = frozenset({VisitStatus.SCHEDULED, VisitStatus.IN_PROGRESS})
TERMINAL_STATUSES = frozenset({VisitStatus.COMPLETED, VisitStatus.CANCELLED})


class PaymentStatus(str, Enum):
    """Payment state of a visit; independent of its lifecycle status."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class TreatmentCategory(str, Enum):
    """Billing category of a treatment line item."""

    CONSULTATION = "consultation"
    MEDICATION = "medication"
    PROCEDURE = "procedure"
    LAB_TEST = "lab_test"
    IMAGING = "imaging"
    OTHER = "other"
