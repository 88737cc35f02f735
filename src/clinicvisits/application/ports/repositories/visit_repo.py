"""Visit repository interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Tuple, TypeVar

from ....domain.entities.visit import Visit
from ....domain.enums import PaymentStatus, VisitStatus
from ....domain.value_objects.visit_id import VisitId

T = TypeVar("T")


@dataclass(frozen=True)
class VisitCriteria:
    """Structural filters evaluated directly against visit fields.

    Every field is optional; set fields are combined with AND. Date bounds
    on ``scheduled_date`` are inclusive.
    """

    visit_id: Optional[VisitId] = None
    status: Optional[VisitStatus] = None
    payment_status: Optional[PaymentStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    patient_id: Optional[str] = None
    practitioner_id: Optional[str] = None

    def matches(self, visit: Visit) -> bool:
        if self.visit_id is not None and visit.visit_id != self.visit_id:
            return False
        if self.status is not None and visit.status is not self.status:
            return False
        if self.payment_status is not None and visit.payment_status is not self.payment_status:
            return False
        if self.start_date is not None and visit.scheduled_date < self.start_date:
            return False
        if self.end_date is not None and visit.scheduled_date > self.end_date:
            return False
        if self.patient_id is not None and visit.patient_id != self.patient_id:
            return False
        if self.practitioner_id is not None and visit.practitioner_id != self.practitioner_id:
            return False
        return True


class VisitRepository(ABC):
    """Abstract repository for visit data access."""

    @abstractmethod
    async def create(self, visit: Visit) -> Visit:
        """Insert a new visit.

        Must reject, atomically, an active visit for a practitioner who
        already has one, raising ActiveVisitConflictError.
        """
        pass

    @abstractmethod
    async def find_by_id(self, visit_id: VisitId) -> Optional[Visit]:
        """Find a visit by ID."""
        pass

    @abstractmethod
    async def mutate(
        self, visit_id: VisitId, mutation: Callable[[Visit], T]
    ) -> Tuple[Visit, T]:
        """Read-modify-write one visit as a single atomic unit.

        ``mutation`` receives the current visit and changes it in place. If it
        raises, nothing is written and the error propagates. Raises
        VisitNotFoundError when the visit does not exist.
        """
        pass

    @abstractmethod
    async def find_matching(self, criteria: VisitCriteria) -> List[Visit]:
        """Return all visits that satisfy the structural criteria."""
        pass
