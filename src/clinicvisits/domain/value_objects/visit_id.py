"""Visit ID value object.

UUID4 based; a visit id is opaque to callers.
"""

import uuid
from dataclasses import dataclass
from typing import Any

from ..errors import ValidationError


@dataclass(frozen=True)
class VisitId:
    """Immutable visit identifier value object."""

    value: str

    def __post_init__(self) -> None:
        """Validate visit ID format."""
        if not self.value or not isinstance(self.value, str):
            raise ValidationError("Visit ID cannot be empty", field="visit_id")

        try:
            uuid.UUID(self.value)
        except ValueError:
            raise ValidationError(
                "Invalid visit ID format", field="visit_id", value=self.value
            )

    def __str__(self) -> str:
        return self.value

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, VisitId):
            return False
        return self.value == other.value

    def __hash__(self) -> int:
        return hash(self.value)

    @classmethod
    def generate(cls) -> "VisitId":
        """Generate a new visit ID using UUID4."""
        return cls(str(uuid.uuid4()))

    @classmethod
    def from_string(cls, value: str) -> "VisitId":
        """Create from string value."""
        return cls(value)
