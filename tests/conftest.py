from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from clinicvisits.adapters.db.memory.participant_directory import (
    InMemoryParticipantDirectory,
)
from clinicvisits.adapters.db.memory.visit_repository import InMemoryVisitRepository
from clinicvisits.application.services.finance_aggregator import FinanceAggregator
from clinicvisits.application.services.visit_writer import VisitWriter
from clinicvisits.domain.entities.participant import Participant
from clinicvisits.domain.enums import ParticipantRole
from clinicvisits.domain.services.treatment_ledger import TreatmentLedger
from clinicvisits.domain.services.visit_lifecycle import VisitLifecycle

NOW = datetime(2025, 6, 15, 10, 0, tzinfo=timezone.utc)


class FixedClock:
    """Deterministic clock; ``advance`` moves it forward."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_participants():
    return {
        "alice": Participant("pat-alice", "Alice Smith", ParticipantRole.PATIENT, email="alice@example.com", phone="555-0101"),
        "bob": Participant("pat-bob", "Bob Jones", ParticipantRole.PATIENT, email="bob@example.com"),
        "smith": Participant("doc-smith", "Dr. Jane Smith", ParticipantRole.PRACTITIONER, specialization="Cardiology", email="smith@example.com"),
        "doe": Participant("doc-doe", "Dr. John Doe", ParticipantRole.PRACTITIONER, specialization="Dermatology"),
        "retired": Participant("doc-retired", "Dr. Old Timer", ParticipantRole.PRACTITIONER, specialization="General", is_active=False),
        "finance": Participant("fin-1", "Fiona Ledger", ParticipantRole.FINANCE),
    }


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def people():
    return make_participants()


@pytest.fixture
def directory(people) -> InMemoryParticipantDirectory:
    return InMemoryParticipantDirectory(people.values())


@pytest.fixture
def visit_repo() -> InMemoryVisitRepository:
    return InMemoryVisitRepository()


@pytest.fixture
def lifecycle(clock) -> VisitLifecycle:
    return VisitLifecycle(clock=clock)


@pytest.fixture
def ledger(clock) -> TreatmentLedger:
    return TreatmentLedger(clock=clock)


@pytest.fixture
def writer(visit_repo, directory) -> VisitWriter:
    return VisitWriter(visit_repo, directory)


@pytest.fixture
def aggregator(visit_repo, directory, clock) -> FinanceAggregator:
    return FinanceAggregator(visit_repo, directory, clock=clock)
