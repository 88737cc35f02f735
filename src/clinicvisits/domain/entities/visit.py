"""Visit domain entity: the root aggregate for scheduling and billing.

A visit owns its treatment line items. ``total_amount`` is derived from the
treatments and is maintained by the treatment ledger; status changes go
through the visit lifecycle. Neither is meant to be assigned directly.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ...core.utils.clock import ensure_utc, utc_now
from ..enums import PaymentStatus, VisitStatus
from ..value_objects.money import ZERO, format_money
from ..value_objects.treatment_id import TreatmentId
from ..value_objects.visit_id import VisitId
from .treatment import Treatment

_IMMUTABLE_FIELDS = frozenset({"visit_id", "patient_id", "practitioner_id"})


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Visit:
    """Visit domain entity."""

    visit_id: VisitId
    patient_id: str
    practitioner_id: str
    scheduled_date: datetime
    status: VisitStatus = VisitStatus.SCHEDULED
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    chief_complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    treatments: List[Treatment] = field(default_factory=list)
    total_amount: Decimal = ZERO
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    # Concurrency token owned by the persistence adapters
    revision: int = 0

    def __post_init__(self) -> None:
        self.status = VisitStatus(self.status)
        self.payment_status = PaymentStatus(self.payment_status)
        self.scheduled_date = ensure_utc(self.scheduled_date)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _IMMUTABLE_FIELDS and name in self.__dict__:
            raise AttributeError(f"{name} cannot be changed after creation")
        super().__setattr__(name, value)

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def duration(self) -> Optional[int]:
        """Minutes between start and end, rounded half up; None until both are set."""
        if self.start_time is None or self.end_time is None:
            return None
        minutes = (self.end_time - self.start_time).total_seconds() / 60
        return int(math.floor(minutes + 0.5))

    def find_treatment(self, treatment_id: TreatmentId) -> Optional[Treatment]:
        for treatment in self.treatments:
            if treatment.treatment_id == treatment_id:
                return treatment
        return None

    def is_participant(self, participant_id: str) -> bool:
        return participant_id in (self.patient_id, self.practitioner_id)

    def touch(self, at: datetime) -> None:
        self.updated_at = at

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the camelCase visit record shape."""
        return {
            "id": self.visit_id.value,
            "patientRef": self.patient_id,
            "practitionerRef": self.practitioner_id,
            "status": self.status.value,
            "scheduledDate": _isoformat(self.scheduled_date),
            "startTime": _isoformat(self.start_time),
            "endTime": _isoformat(self.end_time),
            "duration": self.duration,
            "chiefComplaint": self.chief_complaint,
            "diagnosis": self.diagnosis,
            "notes": self.notes,
            "treatments": [t.to_record() for t in self.treatments],
            "totalAmount": format_money(self.total_amount),
            "paymentStatus": self.payment_status.value,
            "createdAt": _isoformat(self.created_at),
            "updatedAt": _isoformat(self.updated_at),
        }
