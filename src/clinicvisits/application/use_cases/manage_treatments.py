"""Add, update and remove treatment use cases.

Each runs as one atomic read-modify-write of the parent visit, so the line
item change and the recomputed visit total are stored together.
"""

import logging
from typing import Any, Mapping

from ...domain.entities.participant import Participant
from ...domain.services.treatment_ledger import TreatmentLedger
from ..dto.visit_dto import AddTreatmentRequest, VisitView
from ..services.access import require_practitioner_owner
from ..services.visit_writer import VisitWriter

logger = logging.getLogger(__name__)


class AddTreatmentUseCase:
    """Use case for adding a treatment to a visit."""

    def __init__(self, writer: VisitWriter, ledger: TreatmentLedger):
        self._writer = writer
        self._ledger = ledger

    async def execute(
        self, actor: Participant, visit_id: str, request: AddTreatmentRequest
    ) -> VisitView:
        view, treatment = await self._writer.apply(
            actor,
            visit_id,
            require_practitioner_owner,
            lambda visit: self._ledger.add_treatment(
                visit,
                name=request.name,
                unit_price=request.unit_price,
                quantity=request.quantity,
                category=request.category,
                description=request.description,
            ),
        )
        logger.info(
            "Treatment %s added to visit %s (total %s)",
            treatment.treatment_id,
            visit_id,
            view.visit.total_amount,
        )
        return view


class UpdateTreatmentUseCase:
    """Use case for a partial update of one treatment."""

    def __init__(self, writer: VisitWriter, ledger: TreatmentLedger):
        self._writer = writer
        self._ledger = ledger

    async def execute(
        self,
        actor: Participant,
        visit_id: str,
        treatment_id: str,
        changes: Mapping[str, Any],
    ) -> VisitView:
        view, _ = await self._writer.apply(
            actor,
            visit_id,
            require_practitioner_owner,
            lambda visit: self._ledger.update_treatment(visit, treatment_id, changes),
        )
        logger.info(
            "Treatment %s updated on visit %s (total %s)",
            treatment_id,
            visit_id,
            view.visit.total_amount,
        )
        return view


class RemoveTreatmentUseCase:
    """Use case for removing a treatment; a missing treatment is not an error."""

    def __init__(self, writer: VisitWriter, ledger: TreatmentLedger):
        self._writer = writer
        self._ledger = ledger

    async def execute(self, actor: Participant, visit_id: str, treatment_id: str) -> VisitView:
        view, removed = await self._writer.apply(
            actor,
            visit_id,
            require_practitioner_owner,
            lambda visit: self._ledger.remove_treatment(visit, treatment_id),
        )
        logger.info(
            "Treatment %s %s visit %s (total %s)",
            treatment_id,
            "removed from" if removed else "was not on",
            visit_id,
            view.visit.total_amount,
        )
        return view
