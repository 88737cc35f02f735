"""Read use cases for patients and practitioners."""

from typing import List, Optional

from ...domain.entities.participant import Participant
from ...domain.enums import ParticipantRole
from ...domain.errors import VisitNotFoundError
from ...domain.value_objects.visit_id import VisitId
from ..dto.visit_dto import VisitView
from ..ports.repositories.participant_repo import ParticipantDirectory
from ..ports.repositories.visit_repo import VisitCriteria, VisitRepository
from ..services.access import require_role, require_visit_access
from ..services.finance_aggregator import build_criteria, join_participants, sort_views


class GetVisitUseCase:
    """Fetch one visit the actor is allowed to see."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        participant_directory: ParticipantDirectory,
    ):
        self._visit_repository = visit_repository
        self._participant_directory = participant_directory

    async def execute(self, actor: Participant, visit_id: str) -> VisitView:
        visit = await self._visit_repository.find_by_id(VisitId.from_string(visit_id))
        if visit is None:
            raise VisitNotFoundError(visit_id)
        require_visit_access(actor, visit)

        participants = await self._participant_directory.resolve_many(
            [visit.patient_id, visit.practitioner_id]
        )
        return join_participants([visit], participants, inner=False)[0]


class ListMyVisitsUseCase:
    """List the actor's own visits, newest scheduled date first."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        participant_directory: ParticipantDirectory,
    ):
        self._visit_repository = visit_repository
        self._participant_directory = participant_directory

    async def execute(
        self, actor: Participant, status: Optional[str] = None
    ) -> List[VisitView]:
        require_role(actor, ParticipantRole.PATIENT, ParticipantRole.PRACTITIONER)

        status_filter = build_criteria(status=status).status
        if actor.role is ParticipantRole.PATIENT:
            criteria = VisitCriteria(status=status_filter, patient_id=actor.participant_id)
        else:
            criteria = VisitCriteria(
                status=status_filter, practitioner_id=actor.participant_id
            )

        visits = await self._visit_repository.find_matching(criteria)
        ids = {v.patient_id for v in visits} | {v.practitioner_id for v in visits}
        participants = await self._participant_directory.resolve_many(ids) if ids else {}
        views = join_participants(visits, participants, inner=False)
        return sort_views(views, "scheduledDate", "desc")
