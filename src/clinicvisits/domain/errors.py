"""Domain errors for the visit, ledger and finance core.

Every business failure is a DomainError subclass carrying a stable
error_code, a human readable message and a details dict. The API layer maps
``http_status`` onto the response; nothing below the API knows about HTTP.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for all domain errors."""

    default_code = "DOMAIN_ERROR"
    http_status = 400

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}


class ValidationError(DomainError):
    """Malformed or out-of-range input."""

    default_code = "VALIDATION_ERROR"
    http_status = 400

    def __init__(self, message: str, field: Optional[str] = None, **details: Any):
        if field is not None:
            details["field"] = field
        super().__init__(message, details=details)


class NotFoundError(DomainError):
    """Referenced record does not exist."""

    default_code = "NOT_FOUND"
    http_status = 404


class VisitNotFoundError(NotFoundError):
    default_code = "VISIT_NOT_FOUND"

    def __init__(self, visit_id: str):
        super().__init__(f"Visit not found: {visit_id}", details={"visit_id": visit_id})


class TreatmentNotFoundError(NotFoundError):
    default_code = "TREATMENT_NOT_FOUND"

    def __init__(self, visit_id: str, treatment_id: str):
        super().__init__(
            f"Treatment not found: {treatment_id}",
            details={"visit_id": visit_id, "treatment_id": treatment_id},
        )


class ParticipantNotFoundError(NotFoundError):
    """Participant is missing, inactive, or has the wrong role."""

    default_code = "PARTICIPANT_NOT_FOUND"

    def __init__(self, participant_id: str, role: Optional[str] = None):
        label = role.capitalize() if role else "Participant"
        super().__init__(
            f"{label} not found or inactive: {participant_id}",
            details={"participant_id": participant_id, "role": role},
        )


class InvalidTransitionError(DomainError):
    """Operation is illegal for the visit's current status."""

    default_code = "INVALID_TRANSITION"
    http_status = 409

    def __init__(self, message: str, current_status: str, action: str):
        super().__init__(
            message, details={"current_status": current_status, "action": action}
        )
        self.current_status = current_status
        self.action = action


class ConflictError(DomainError):
    """Write rejected because it conflicts with existing state."""

    default_code = "CONFLICT"
    http_status = 409


class ActiveVisitConflictError(ConflictError):
    default_code = "ACTIVE_VISIT_CONFLICT"

    def __init__(self, practitioner_id: str):
        super().__init__(
            "This practitioner already has an active visit scheduled. "
            "Please choose another time or practitioner.",
            details={"practitioner_id": practitioner_id},
        )
        self.practitioner_id = practitioner_id


class AuthorizationError(DomainError):
    """Participant is not allowed to act on this record."""

    default_code = "FORBIDDEN"
    http_status = 403
