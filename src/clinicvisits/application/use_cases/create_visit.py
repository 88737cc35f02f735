"""Create Visit use case.

A patient schedules a visit with an active practitioner. The repository
insert is the atomic guard for the one-active-visit-per-practitioner rule.
"""

import logging

from ...domain.entities.participant import Participant
from ...domain.enums import ParticipantRole
from ...domain.errors import ActiveVisitConflictError, ParticipantNotFoundError
from ...domain.services.visit_lifecycle import VisitLifecycle
from ..dto.visit_dto import CreateVisitRequest, VisitView
from ..ports.repositories.participant_repo import ParticipantDirectory
from ..ports.repositories.visit_repo import VisitRepository
from ..services.access import require_role

logger = logging.getLogger(__name__)


class CreateVisitUseCase:
    """Use case for scheduling a new visit."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        participant_directory: ParticipantDirectory,
        lifecycle: VisitLifecycle,
    ):
        self._visit_repository = visit_repository
        self._participant_directory = participant_directory
        self._lifecycle = lifecycle

    async def execute(self, actor: Participant, request: CreateVisitRequest) -> VisitView:
        """Execute the create visit use case."""
        require_role(actor, ParticipantRole.PATIENT)

        practitioner = await self._participant_directory.resolve(request.practitioner_id)
        if practitioner is None or not practitioner.has_role(ParticipantRole.PRACTITIONER):
            raise ParticipantNotFoundError(
                request.practitioner_id, ParticipantRole.PRACTITIONER.value
            )

        visit = self._lifecycle.create(
            patient_id=actor.participant_id,
            practitioner_id=practitioner.participant_id,
            scheduled_date=request.scheduled_date,
            chief_complaint=request.chief_complaint,
        )

        try:
            saved = await self._visit_repository.create(visit)
        except ActiveVisitConflictError:
            logger.warning(
                "Rejected visit for practitioner %s: active visit exists",
                practitioner.participant_id,
            )
            raise

        logger.info(
            "Visit %s scheduled by patient %s with practitioner %s",
            saved.visit_id,
            actor.participant_id,
            practitioner.participant_id,
        )
        return VisitView(visit=saved, patient=actor, practitioner=practitioner)
