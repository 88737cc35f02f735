"""Start, complete and cancel visit use cases."""

import logging

from ...domain.entities.participant import Participant
from ...domain.entities.visit import Visit
from ...domain.enums import ParticipantRole
from ...domain.errors import AuthorizationError
from ...domain.services.visit_lifecycle import VisitLifecycle
from ..dto.visit_dto import VisitView
from ..services.access import require_practitioner_owner, require_role
from ..services.visit_writer import VisitWriter

logger = logging.getLogger(__name__)


def _require_patient_or_practitioner_owner(actor: Participant, visit: Visit) -> None:
    require_role(actor, ParticipantRole.PATIENT, ParticipantRole.PRACTITIONER)
    owner = (
        visit.patient_id
        if actor.role is ParticipantRole.PATIENT
        else visit.practitioner_id
    )
    if owner != actor.participant_id:
        raise AuthorizationError(
            "Not authorized to cancel this visit",
            details={"participant_id": actor.participant_id, "visit_id": visit.visit_id.value},
        )


class StartVisitUseCase:
    """Practitioner starts a scheduled visit."""

    def __init__(self, writer: VisitWriter, lifecycle: VisitLifecycle):
        self._writer = writer
        self._lifecycle = lifecycle

    async def execute(self, actor: Participant, visit_id: str) -> VisitView:
        view, _ = await self._writer.apply(
            actor, visit_id, require_practitioner_owner, self._lifecycle.start
        )
        logger.info("Visit %s started by %s", visit_id, actor.participant_id)
        return view


class CompleteVisitUseCase:
    """Practitioner completes a visit."""

    def __init__(self, writer: VisitWriter, lifecycle: VisitLifecycle):
        self._writer = writer
        self._lifecycle = lifecycle

    async def execute(self, actor: Participant, visit_id: str) -> VisitView:
        view, _ = await self._writer.apply(
            actor, visit_id, require_practitioner_owner, self._lifecycle.complete
        )
        logger.info(
            "Visit %s completed by %s (total %s)",
            visit_id,
            actor.participant_id,
            view.visit.total_amount,
        )
        return view


class CancelVisitUseCase:
    """Patient or practitioner of the visit cancels it."""

    def __init__(self, writer: VisitWriter, lifecycle: VisitLifecycle):
        self._writer = writer
        self._lifecycle = lifecycle

    async def execute(self, actor: Participant, visit_id: str) -> VisitView:
        view, _ = await self._writer.apply(
            actor, visit_id, _require_patient_or_practitioner_owner, self._lifecycle.cancel
        )
        logger.info("Visit %s cancelled by %s", visit_id, actor.participant_id)
        return view
