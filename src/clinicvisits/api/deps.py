"""FastAPI dependency providers.

Repositories are process-wide singletons chosen by ``STORAGE_BACKEND``.
Domain services are built per request from settings and the clock, so tests
can override ``get_clock`` or either repository provider.
"""

from functools import lru_cache
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status

from clinicvisits.adapters.db.memory.participant_directory import (
    InMemoryParticipantDirectory,
)
from clinicvisits.adapters.db.memory.visit_repository import InMemoryVisitRepository
from clinicvisits.adapters.db.mongo.repositories.participant_directory import (
    MongoParticipantDirectory,
)
from clinicvisits.adapters.db.mongo.repositories.visit_repository import (
    MongoVisitRepository,
)
from clinicvisits.application.ports.repositories.participant_repo import (
    ParticipantDirectory,
)
from clinicvisits.application.ports.repositories.visit_repo import VisitRepository
from clinicvisits.application.services.finance_aggregator import FinanceAggregator
from clinicvisits.application.services.visit_writer import VisitWriter
from clinicvisits.core.config import Settings, get_settings
from clinicvisits.core.utils.clock import Clock, utc_now
from clinicvisits.domain.entities.participant import Participant
from clinicvisits.domain.services.treatment_ledger import TreatmentLedger
from clinicvisits.domain.services.visit_lifecycle import TextLimits, VisitLifecycle

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_clock() -> Clock:
    """Get the clock used to stamp visit timestamps."""
    return utc_now


@lru_cache()
def get_visit_repository() -> VisitRepository:
    """Get visit repository instance."""
    settings = get_settings()
    if settings.storage.backend == "memory":
        return InMemoryVisitRepository()
    return MongoVisitRepository(max_write_attempts=settings.storage.max_write_attempts)


@lru_cache()
def get_participant_directory() -> ParticipantDirectory:
    """Get participant directory instance."""
    if get_settings().storage.backend == "memory":
        return InMemoryParticipantDirectory()
    return MongoParticipantDirectory()


ClockDep = Annotated[Clock, Depends(get_clock)]
VisitRepositoryDep = Annotated[VisitRepository, Depends(get_visit_repository)]
ParticipantDirectoryDep = Annotated[
    ParticipantDirectory, Depends(get_participant_directory)
]


def get_visit_lifecycle(settings: SettingsDep, clock: ClockDep) -> VisitLifecycle:
    return VisitLifecycle(
        clock=clock,
        allow_direct_completion=settings.visit.allow_direct_completion,
        text_limits=TextLimits(
            chief_complaint=settings.visit.chief_complaint_max_length,
            diagnosis=settings.visit.diagnosis_max_length,
            notes=settings.visit.notes_max_length,
        ),
    )


def get_treatment_ledger(clock: ClockDep) -> TreatmentLedger:
    return TreatmentLedger(clock=clock)


def get_visit_writer(
    visit_repo: VisitRepositoryDep, directory: ParticipantDirectoryDep
) -> VisitWriter:
    return VisitWriter(visit_repo, directory)


def get_finance_aggregator(
    settings: SettingsDep,
    clock: ClockDep,
    visit_repo: VisitRepositoryDep,
    directory: ParticipantDirectoryDep,
) -> FinanceAggregator:
    return FinanceAggregator(
        visit_repo,
        directory,
        clock=clock,
        reporting_timezone=settings.finance.reporting_timezone,
        max_page_size=settings.finance.max_page_size,
        top_practitioners=settings.finance.top_practitioners,
        recent_visits=settings.finance.recent_visits,
    )


async def get_current_participant(
    directory: ParticipantDirectoryDep,
    x_participant_id: Annotated[Optional[str], Header()] = None,
) -> Participant:
    """Resolve the calling participant from the ``X-Participant-Id`` header.

    Authentication happens upstream; this only looks the id up.
    """
    if not x_participant_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "UNAUTHENTICATED",
                "message": "X-Participant-Id header is required",
                "details": {},
            },
        )
    participant = await directory.resolve(x_participant_id)
    if participant is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "UNAUTHENTICATED",
                "message": "Unknown participant",
                "details": {"participant_id": x_participant_id},
            },
        )
    return participant


# Dependency annotations for FastAPI
VisitLifecycleDep = Annotated[VisitLifecycle, Depends(get_visit_lifecycle)]
TreatmentLedgerDep = Annotated[TreatmentLedger, Depends(get_treatment_ledger)]
VisitWriterDep = Annotated[VisitWriter, Depends(get_visit_writer)]
FinanceAggregatorDep = Annotated[FinanceAggregator, Depends(get_finance_aggregator)]
CurrentParticipantDep = Annotated[Participant, Depends(get_current_participant)]
