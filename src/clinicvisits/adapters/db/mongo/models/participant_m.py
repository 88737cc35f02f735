"""MongoDB Beanie model for participants.

The identity service owns these documents; this core only reads them.
"""

from typing import Optional

from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, IndexModel


class ParticipantMongo(Document):
    """MongoDB model for Participant entity."""

    participant_id: str = Field(..., description="Participant ID")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Email address")
    phone: Optional[str] = Field(None, description="Phone number")
    role: str = Field(..., description="patient, practitioner or finance")
    specialization: Optional[str] = Field(None, description="Practitioner specialization")
    is_active: bool = Field(default=True)

    class Settings:
        name = "participants"
        indexes = [
            IndexModel([("participant_id", ASCENDING)], unique=True),
            [("role", ASCENDING), ("is_active", ASCENDING)],
        ]
