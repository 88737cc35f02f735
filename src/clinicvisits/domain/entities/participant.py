"""Participant domain entity (patient, practitioner or finance staff).

Participants are owned by the identity service; this core only reads them to
check roles and to show names in reports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..enums import ParticipantRole
from ..errors import ValidationError


@dataclass
class Participant:
    """Participant domain entity."""

    participant_id: str
    name: str
    role: ParticipantRole
    is_active: bool = True
    specialization: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.participant_id or not self.participant_id.strip():
            raise ValidationError(
                "participant_id must be a non-empty string", field="participant_id"
            )
        try:
            self.role = ParticipantRole(self.role)
        except ValueError:
            raise ValidationError("Invalid participant role", field="role", value=self.role)

        # Specialization is required for practitioners and meaningless otherwise
        if self.role is ParticipantRole.PRACTITIONER:
            if not self.specialization or not self.specialization.strip():
                raise ValidationError(
                    "Specialization is required for practitioners", field="specialization"
                )
        else:
            self.specialization = None

    def has_role(self, role: ParticipantRole) -> bool:
        return self.is_active and self.role is role

    def summary(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.participant_id,
            "name": self.name,
            "email": self.email,
        }
        if self.role is ParticipantRole.PRACTITIONER:
            data["specialization"] = self.specialization
        else:
            data["phone"] = self.phone
        return data
