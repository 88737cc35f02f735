"""Update Visit use case: diagnosis, notes and chief complaint."""

import logging
from typing import Any, Mapping

from ...domain.entities.participant import Participant
from ...domain.services.visit_lifecycle import VisitLifecycle
from ..dto.visit_dto import VisitView
from ..services.access import require_practitioner_owner
from ..services.visit_writer import VisitWriter

logger = logging.getLogger(__name__)


class UpdateVisitUseCase:
    """Use case for partial updates of a visit's clinical text."""

    def __init__(self, writer: VisitWriter, lifecycle: VisitLifecycle):
        self._writer = writer
        self._lifecycle = lifecycle

    async def execute(
        self, actor: Participant, visit_id: str, changes: Mapping[str, Any]
    ) -> VisitView:
        """Only keys present in ``changes`` are written."""
        view, _ = await self._writer.apply(
            actor,
            visit_id,
            require_practitioner_owner,
            lambda visit: self._lifecycle.update_clinical_fields(visit, changes),
        )
        logger.info(
            "Visit %s updated by %s (fields: %s)",
            visit_id,
            actor.participant_id,
            ", ".join(sorted(changes)) or "none",
        )
        return view
