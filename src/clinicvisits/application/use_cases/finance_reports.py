"""Finance reporting use cases: search, dashboard, export and visit details.

Each checks that the actor is active finance staff and delegates to the
FinanceAggregator.
"""

from typing import List

from ...domain.entities.participant import Participant
from ...domain.enums import ParticipantRole
from ..dto.finance_dto import (
    Dashboard,
    ExportQuery,
    ExportRow,
    VisitSearchQuery,
    VisitSearchResult,
)
from ..dto.visit_dto import VisitView
from ..services.access import require_role
from ..services.finance_aggregator import FinanceAggregator


class SearchVisitsUseCase:
    def __init__(self, aggregator: FinanceAggregator):
        self._aggregator = aggregator

    async def execute(self, actor: Participant, query: VisitSearchQuery) -> VisitSearchResult:
        require_role(actor, ParticipantRole.FINANCE)
        return await self._aggregator.search(query)


class GetDashboardUseCase:
    def __init__(self, aggregator: FinanceAggregator):
        self._aggregator = aggregator

    async def execute(self, actor: Participant) -> Dashboard:
        require_role(actor, ParticipantRole.FINANCE)
        return await self._aggregator.dashboard()


class ExportVisitsUseCase:
    def __init__(self, aggregator: FinanceAggregator):
        self._aggregator = aggregator

    async def execute(self, actor: Participant, query: ExportQuery) -> List[ExportRow]:
        require_role(actor, ParticipantRole.FINANCE)
        return await self._aggregator.export(query)


class GetVisitDetailsUseCase:
    def __init__(self, aggregator: FinanceAggregator):
        self._aggregator = aggregator

    async def execute(self, actor: Participant, visit_id: str) -> VisitView:
        require_role(actor, ParticipantRole.FINANCE)
        return await self._aggregator.visit_details(visit_id)
