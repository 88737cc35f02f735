"""Shared write path for use cases that change one existing visit.

The authorization check and the change run inside the repository's atomic
read-modify-write, against the freshly read visit.
"""

import logging
from typing import Callable, Tuple, TypeVar

from ...domain.entities.participant import Participant
from ...domain.entities.visit import Visit
from ...domain.errors import InvalidTransitionError
from ...domain.value_objects.visit_id import VisitId
from ..dto.visit_dto import VisitView
from ..ports.repositories.participant_repo import ParticipantDirectory
from ..ports.repositories.visit_repo import VisitRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

Authorizer = Callable[[Participant, Visit], None]


class VisitWriter:
    """Runs an authorized, atomic change against a single visit."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        participant_directory: ParticipantDirectory,
    ):
        self._visit_repository = visit_repository
        self._participant_directory = participant_directory

    async def apply(
        self,
        actor: Participant,
        visit_id: str,
        authorize: Authorizer,
        change: Callable[[Visit], T],
    ) -> Tuple[VisitView, T]:
        def mutation(visit: Visit) -> T:
            authorize(actor, visit)
            return change(visit)

        try:
            visit, result = await self._visit_repository.mutate(
                VisitId.from_string(visit_id), mutation
            )
        except InvalidTransitionError as exc:
            logger.warning(
                "Rejected %s on visit %s in status %s",
                exc.action,
                visit_id,
                exc.current_status,
            )
            raise

        return await self.view(visit), result

    async def view(self, visit: Visit) -> VisitView:
        participants = await self._participant_directory.resolve_many(
            [visit.patient_id, visit.practitioner_id]
        )
        return VisitView(
            visit=visit,
            patient=participants.get(visit.patient_id),
            practitioner=participants.get(visit.practitioner_id),
        )
