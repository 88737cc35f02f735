"""Visit DTOs for API communication."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from ...domain.entities.participant import Participant
from ...domain.entities.visit import Visit


@dataclass
class CreateVisitRequest:
    """Request DTO for scheduling a visit."""

    practitioner_id: str
    scheduled_date: datetime
    chief_complaint: Optional[str] = None


@dataclass
class AddTreatmentRequest:
    """Request DTO for adding a treatment line item."""

    name: str
    unit_price: Union[Decimal, int, float, str]
    quantity: int = 1
    category: str = "other"
    description: Optional[str] = None


@dataclass
class VisitView:
    """A visit joined with its patient and practitioner."""

    visit: Visit
    patient: Optional[Participant] = None
    practitioner: Optional[Participant] = None

    @property
    def patient_name(self) -> Optional[str]:
        return self.patient.name if self.patient else None

    @property
    def practitioner_name(self) -> Optional[str]:
        return self.practitioner.name if self.practitioner else None

    def to_record(self) -> Dict[str, Any]:
        record = self.visit.to_record()
        record["patient"] = self.patient.summary() if self.patient else None
        record["doctor"] = self.practitioner.summary() if self.practitioner else None
        return record
