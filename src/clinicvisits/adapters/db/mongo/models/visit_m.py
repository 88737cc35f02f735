"""
MongoDB Beanie models used by the persistence layer.

Money is stored as integer cents so that store-side sums stay exact.
"""

from datetime import datetime
from typing import List, Optional

from beanie import Document
from pydantic import BaseModel, Field
from pymongo import ASCENDING, IndexModel

from clinicvisits.core.utils.clock import utc_now


class TreatmentMongo(BaseModel):
    """Embedded treatment line item."""

    treatment_id: str = Field(..., description="Treatment ID, unique within the visit")
    name: str = Field(..., description="Treatment name")
    description: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    unit_price_cents: int = Field(..., ge=0)
    total_price_cents: int = Field(..., ge=0)
    category: str = Field(default="other")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class VisitMongo(Document):
    """MongoDB model for visit."""

    visit_id: str = Field(..., description="Visit ID (UUID)")
    patient_id: str = Field(..., description="Patient ID reference")
    practitioner_id: str = Field(..., description="Practitioner ID reference")
    status: str = Field(default="scheduled")  # scheduled, in_progress, completed, cancelled
    scheduled_date: datetime = Field(..., description="Scheduled date")
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    chief_complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    notes: Optional[str] = None
    treatments: List[TreatmentMongo] = Field(default_factory=list)
    total_amount_cents: int = Field(default=0, ge=0)
    payment_status: str = Field(default="pending")  # pending, partial, paid
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    # Compare-and-write token for read-modify-write updates
    revision: int = Field(default=1)

    # Practitioner id while the visit is scheduled/in_progress, else null.
    # The partial unique index below allows one active visit per practitioner.
    active_practitioner_id: Optional[str] = None

    class Settings:
        name = "visits"
        indexes = [
            IndexModel([("visit_id", ASCENDING)], unique=True),
            [("patient_id", ASCENDING), ("status", ASCENDING)],
            [("practitioner_id", ASCENDING), ("status", ASCENDING)],
            [("scheduled_date", ASCENDING), ("status", ASCENDING)],
            [("payment_status", ASCENDING), ("status", ASCENDING)],
            "created_at",
            IndexModel(
                [("active_practitioner_id", ASCENDING)],
                name="one_active_visit_per_practitioner",
                unique=True,
                partialFilterExpression={"active_practitioner_id": {"$type": "string"}},
            ),
        ]
