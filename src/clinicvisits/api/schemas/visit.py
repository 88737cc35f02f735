"""
Pydantic schemas for visit and treatment endpoints.

Update schemas are partial: only fields present in the request body are
applied (``model_dump(exclude_unset=True)``), so an explicit ``null`` clears
a field while an omitted one is left alone.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, validator


class ErrorResponse(BaseModel):
    """Error body shared by all endpoints."""

    error: str = Field(..., description="Stable error code")
    message: str = Field(..., description="Human readable message")
    details: Dict[str, Any] = Field(default_factory=dict)


class CreateVisitRequest(BaseModel):
    """Request schema for scheduling a visit."""

    practitioner_id: str = Field(..., min_length=1, description="Practitioner ID")
    scheduled_date: datetime = Field(..., description="Appointment date and time")
    chief_complaint: Optional[str] = Field(None, description="Reason for the visit")

    @validator("practitioner_id")
    def validate_practitioner_id(cls, v):
        if not v.strip():
            raise ValueError("Practitioner ID cannot be empty")
        return v.strip()


class UpdateVisitRequest(BaseModel):
    """Request schema for updating clinical text."""

    chief_complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    notes: Optional[str] = None


class AddTreatmentRequest(BaseModel):
    """Request schema for adding a treatment."""

    name: str = Field(..., description="Treatment name")
    unit_price: Decimal = Field(..., description="Price per unit")
    quantity: int = Field(default=1, description="Number of units")
    category: str = Field(default="other", description="Treatment category")
    description: Optional[str] = Field(None, description="Treatment description")


class UpdateTreatmentRequest(BaseModel):
    """Request schema for a partial treatment update."""

    name: Optional[str] = None
    unit_price: Optional[Decimal] = None
    quantity: Optional[int] = None
    category: Optional[str] = None
    description: Optional[str] = None
