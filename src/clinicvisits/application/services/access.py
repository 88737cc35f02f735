"""Role and ownership checks applied at the use-case boundary."""

from ...domain.entities.participant import Participant
from ...domain.entities.visit import Visit
from ...domain.enums import ParticipantRole
from ...domain.errors import AuthorizationError


def require_role(actor: Participant, *roles: ParticipantRole) -> None:
    if not actor.is_active or actor.role not in roles:
        allowed = ", ".join(role.value for role in roles)
        raise AuthorizationError(
            f"Only {allowed} users can perform this action",
            details={"participant_id": actor.participant_id, "role": actor.role.value},
        )


def require_visit_access(actor: Participant, visit: Visit) -> None:
    """Patients and practitioners only reach their own visits; finance reaches all."""
    owner = {
        ParticipantRole.PATIENT: visit.patient_id,
        ParticipantRole.PRACTITIONER: visit.practitioner_id,
    }.get(actor.role)
    if actor.is_active and (
        actor.role is ParticipantRole.FINANCE or owner == actor.participant_id
    ):
        return
    raise AuthorizationError(
        "Not authorized to access this visit",
        details={"participant_id": actor.participant_id, "visit_id": visit.visit_id.value},
    )


def require_practitioner_owner(actor: Participant, visit: Visit) -> None:
    require_role(actor, ParticipantRole.PRACTITIONER)
    if visit.practitioner_id != actor.participant_id:
        raise AuthorizationError(
            "Not authorized to modify this visit",
            details={"participant_id": actor.participant_id, "visit_id": visit.visit_id.value},
        )
