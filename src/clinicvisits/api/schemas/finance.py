"""
Pydantic schemas for finance endpoints.
"""

from pydantic import BaseModel, Field


class UpdatePaymentStatusRequest(BaseModel):
    """Request schema for changing a visit's payment status."""

    payment_status: str = Field(..., description="pending, partial or paid")
