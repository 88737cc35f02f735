"""Treatment ID value object.

UUID4 based; a treatment id is opaque to callers.
"""

import uuid
from dataclasses import dataclass
from typing import Any

from ..errors import ValidationError


@dataclass(frozen=True)
class TreatmentId:
    """Immutable treatment identifier value object."""

    value: str

    def __post_init__(self) -> None:
        """Validate treatment ID format."""
        if not self.value or not isinstance(self.value, str):
            raise ValidationError("Treatment ID cannot be empty", field="treatment_id")

        try:
            uuid.UUID(self.value)
        except ValueError:
            raise ValidationError(
                "Invalid treatment ID format", field="treatment_id", value=self.value
            )

    def __str__(self) -> str:
        return self.value

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, TreatmentId):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def generate(cls) -> "TreatmentId":
        """Generate a new treatment ID using UUID4."""
        return cls(str(uuid.uuid4()))

    @classmethod
    def from_string(cls, value: str) -> "TreatmentId":
        """Create from string value."""
        return cls(value)
