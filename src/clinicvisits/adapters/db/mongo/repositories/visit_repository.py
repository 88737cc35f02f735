"""
MongoDB implementation of VisitRepository.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from pymongo.errors import DuplicateKeyError

from clinicvisits.application.ports.repositories.visit_repo import (
    VisitCriteria,
    VisitRepository,
)
from clinicvisits.core.utils.clock import ensure_utc
from clinicvisits.domain.entities.treatment import Treatment
from clinicvisits.domain.entities.visit import Visit
from clinicvisits.domain.errors import (
    ActiveVisitConflictError,
    ConflictError,
    VisitNotFoundError,
)
from clinicvisits.domain.value_objects.money import from_cents, to_cents
from clinicvisits.domain.value_objects.treatment_id import TreatmentId
from clinicvisits.domain.value_objects.visit_id import VisitId

from ..models.visit_m import TreatmentMongo, VisitMongo

logger = logging.getLogger(__name__)

T = TypeVar("T")

ACTIVE_INDEX_FIELD = "active_practitioner_id"


def _optional_utc(value):
    return ensure_utc(value) if value is not None else None


class MongoVisitRepository(VisitRepository):
    """MongoDB implementation of VisitRepository.

    Single-visit writes are compare-and-write on ``revision``: read the
    document, apply the mutation, then update only if the revision is still
    the one that was read. A lost race re-reads and re-applies, up to
    ``max_write_attempts`` rounds.
    """

    def __init__(self, max_write_attempts: int = 5):
        self._max_write_attempts = max_write_attempts

    async def create(self, visit: Visit) -> Visit:
        """Insert a visit; the partial unique index rejects a second active one."""
        visit.revision = 1
        visit_mongo = VisitMongo(**self._domain_to_fields(visit))
        try:
            await visit_mongo.insert()
        except DuplicateKeyError as exc:
            key_pattern = (exc.details or {}).get("keyPattern") or {}
            if ACTIVE_INDEX_FIELD in key_pattern or ACTIVE_INDEX_FIELD in str(exc):
                raise ActiveVisitConflictError(visit.practitioner_id) from exc
            raise
        return self._mongo_to_domain(visit_mongo)

    async def find_by_id(self, visit_id: VisitId) -> Optional[Visit]:
        """Find a visit by ID."""
        visit_mongo = await VisitMongo.find_one(VisitMongo.visit_id == visit_id.value)
        if not visit_mongo:
            return None
        return self._mongo_to_domain(visit_mongo)

    async def mutate(
        self, visit_id: VisitId, mutation: Callable[[Visit], T]
    ) -> Tuple[Visit, T]:
        for attempt in range(1, self._max_write_attempts + 1):
            visit_mongo = await VisitMongo.find_one(VisitMongo.visit_id == visit_id.value)
            if not visit_mongo:
                raise VisitNotFoundError(visit_id.value)

            read_revision = visit_mongo.revision
            visit = self._mongo_to_domain(visit_mongo)
            result = mutation(visit)
            visit.revision = read_revision + 1

            outcome = await VisitMongo.find_one(
                VisitMongo.visit_id == visit_id.value,
                VisitMongo.revision == read_revision,
            ).update({"$set": self._domain_to_fields(visit)})

            if getattr(outcome, "matched_count", 0) == 1:
                return visit, result

            logger.info(
                "Visit %s changed during update (attempt %d/%d), retrying",
                visit_id,
                attempt,
                self._max_write_attempts,
            )

        raise ConflictError(
            "Visit was modified concurrently; please retry",
            details={"visit_id": visit_id.value},
        )

    async def find_matching(self, criteria: VisitCriteria) -> List[Visit]:
        visits_mongo = await VisitMongo.find(self._criteria_to_query(criteria)).to_list()
        return [self._mongo_to_domain(visit_mongo) for visit_mongo in visits_mongo]

    @staticmethod
    def _criteria_to_query(criteria: VisitCriteria) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if criteria.visit_id is not None:
            query["visit_id"] = criteria.visit_id.value
        if criteria.status is not None:
            query["status"] = criteria.status.value
        if criteria.payment_status is not None:
            query["payment_status"] = criteria.payment_status.value
        if criteria.patient_id is not None:
            query["patient_id"] = criteria.patient_id
        if criteria.practitioner_id is not None:
            query["practitioner_id"] = criteria.practitioner_id
        if criteria.start_date is not None or criteria.end_date is not None:
            date_range: Dict[str, Any] = {}
            if criteria.start_date is not None:
                date_range["$gte"] = criteria.start_date
            if criteria.end_date is not None:
                date_range["$lte"] = criteria.end_date
            query["scheduled_date"] = date_range
        return query

    @staticmethod
    def _domain_to_fields(visit: Visit) -> Dict[str, Any]:
        """Convert domain entity to the stored field mapping."""
        return {
            "visit_id": visit.visit_id.value,
            "patient_id": visit.patient_id,
            "practitioner_id": visit.practitioner_id,
            "status": visit.status.value,
            "scheduled_date": visit.scheduled_date,
            "start_time": visit.start_time,
            "end_time": visit.end_time,
            "chief_complaint": visit.chief_complaint,
            "diagnosis": visit.diagnosis,
            "notes": visit.notes,
            "treatments": [
                TreatmentMongo(
                    treatment_id=t.treatment_id.value,
                    name=t.name,
                    description=t.description,
                    quantity=t.quantity,
                    unit_price_cents=to_cents(t.unit_price),
                    total_price_cents=to_cents(t.total_price),
                    category=t.category.value,
                    created_at=t.created_at,
                    updated_at=t.updated_at,
                ).model_dump()
                for t in visit.treatments
            ],
            "total_amount_cents": to_cents(visit.total_amount),
            "payment_status": visit.payment_status.value,
            "created_at": visit.created_at,
            "updated_at": visit.updated_at,
            "revision": visit.revision,
            ACTIVE_INDEX_FIELD: visit.practitioner_id if visit.is_active else None,
        }

    @staticmethod
    def _mongo_to_domain(visit_mongo: VisitMongo) -> Visit:
        """Convert MongoDB model to domain entity."""
        treatments = [
            Treatment(
                treatment_id=TreatmentId(t.treatment_id),
                name=t.name,
                description=t.description,
                quantity=t.quantity,
                unit_price=from_cents(t.unit_price_cents),
                category=t.category,
                created_at=ensure_utc(t.created_at),
                updated_at=ensure_utc(t.updated_at),
            )
            for t in visit_mongo.treatments
        ]
        visit = Visit(
            visit_id=VisitId(visit_mongo.visit_id),
            patient_id=visit_mongo.patient_id,
            practitioner_id=visit_mongo.practitioner_id,
            scheduled_date=ensure_utc(visit_mongo.scheduled_date),
            status=visit_mongo.status,
            start_time=_optional_utc(visit_mongo.start_time),
            end_time=_optional_utc(visit_mongo.end_time),
            chief_complaint=visit_mongo.chief_complaint,
            diagnosis=visit_mongo.diagnosis,
            notes=visit_mongo.notes,
            treatments=treatments,
            total_amount=from_cents(visit_mongo.total_amount_cents),
            payment_status=visit_mongo.payment_status,
            created_at=ensure_utc(visit_mongo.created_at),
            updated_at=ensure_utc(visit_mongo.updated_at),
            revision=visit_mongo.revision,
        )
        return visit
