"""In-process implementation of VisitRepository.

Visits are kept as deep copies so callers never share state with the store.
A single asyncio lock serializes writers: the active-visit check and the
insert happen under it, and every mutate() is a read-modify-write under it.
"""

import asyncio
import copy
import logging
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from clinicvisits.application.ports.repositories.visit_repo import (
    VisitCriteria,
    VisitRepository,
)
from clinicvisits.domain.entities.visit import Visit
from clinicvisits.domain.errors import ActiveVisitConflictError, VisitNotFoundError
from clinicvisits.domain.value_objects.visit_id import VisitId

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InMemoryVisitRepository(VisitRepository):
    """Dictionary-backed visit store."""

    def __init__(self) -> None:
        self._visits: Dict[str, Visit] = {}
        self._lock = asyncio.Lock()

    async def create(self, visit: Visit) -> Visit:
        async with self._lock:
            if visit.is_active and self._has_active(visit.practitioner_id):
                raise ActiveVisitConflictError(visit.practitioner_id)
            stored = copy.deepcopy(visit)
            stored.revision = 1
            self._visits[visit.visit_id.value] = stored
            return copy.deepcopy(stored)

    async def find_by_id(self, visit_id: VisitId) -> Optional[Visit]:
        stored = self._visits.get(visit_id.value)
        return copy.deepcopy(stored) if stored else None

    async def mutate(
        self, visit_id: VisitId, mutation: Callable[[Visit], T]
    ) -> Tuple[Visit, T]:
        async with self._lock:
            stored = self._visits.get(visit_id.value)
            if stored is None:
                raise VisitNotFoundError(visit_id.value)

            # Work on a copy; a failing mutation leaves the stored visit intact
            working = copy.deepcopy(stored)
            result = mutation(working)
            working.revision = stored.revision + 1
            self._visits[visit_id.value] = working
            return copy.deepcopy(working), result

    async def find_matching(self, criteria: VisitCriteria) -> List[Visit]:
        return [copy.deepcopy(v) for v in self._visits.values() if criteria.matches(v)]

    def _has_active(self, practitioner_id: str) -> bool:
        return any(
            v.practitioner_id == practitioner_id and v.is_active
            for v in self._visits.values()
        )
