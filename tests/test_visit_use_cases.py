from __future__ import annotations

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from clinicvisits.application.dto.visit_dto import AddTreatmentRequest, CreateVisitRequest
from clinicvisits.application.ports.repositories.visit_repo import VisitCriteria
from clinicvisits.application.use_cases.change_visit_status import (
    CancelVisitUseCase,
    CompleteVisitUseCase,
    StartVisitUseCase,
)
from clinicvisits.application.use_cases.create_visit import CreateVisitUseCase
from clinicvisits.application.use_cases.get_visits import GetVisitUseCase, ListMyVisitsUseCase
from clinicvisits.application.use_cases.manage_treatments import (
    AddTreatmentUseCase,
    RemoveTreatmentUseCase,
    UpdateTreatmentUseCase,
)
from clinicvisits.application.use_cases.update_payment_status import UpdatePaymentStatusUseCase
from clinicvisits.application.use_cases.update_visit import UpdateVisitUseCase
from clinicvisits.domain.enums import PaymentStatus, VisitStatus
from clinicvisits.domain.errors import (
    ActiveVisitConflictError,
    AuthorizationError,
    ConflictError,
    InvalidTransitionError,
    ParticipantNotFoundError,
    ValidationError,
    VisitNotFoundError,
)
from clinicvisits.domain.value_objects.visit_id import VisitId

from .conftest import NOW


@pytest.fixture
def create_visit(visit_repo, directory, lifecycle):
    return CreateVisitUseCase(visit_repo, directory, lifecycle)


def _request(practitioner_id="doc-smith", hours=24, **kwargs) -> CreateVisitRequest:
    return CreateVisitRequest(
        practitioner_id=practitioner_id,
        scheduled_date=NOW + timedelta(hours=hours),
        **kwargs,
    )


async def test_create_visit_returns_joined_view(create_visit, people) -> None:
    view = await create_visit.execute(people["alice"], _request(chief_complaint="rash"))

    assert view.visit.status is VisitStatus.SCHEDULED
    assert view.visit.total_amount == Decimal("0.00")
    assert view.patient_name == "Alice Smith"
    assert view.practitioner_name == "Dr. Jane Smith"

    record = view.to_record()
    assert record["totalAmount"] == "0.00"
    assert record["doctor"]["specialization"] == "Cardiology"
    assert record["patient"]["phone"] == "555-0101"


async def test_second_active_visit_for_practitioner_conflicts(create_visit, people) -> None:
    await create_visit.execute(people["alice"], _request())

    with pytest.raises(ConflictError) as excinfo:
        await create_visit.execute(people["bob"], _request(hours=48))
    assert excinfo.value.error_code == "ACTIVE_VISIT_CONFLICT"

    # A different practitioner is unaffected
    await create_visit.execute(people["bob"], _request(practitioner_id="doc-doe"))


async def test_concurrent_creates_admit_exactly_one(create_visit, visit_repo, people) -> None:
    results = await asyncio.gather(
        create_visit.execute(people["alice"], _request()),
        create_visit.execute(people["bob"], _request(hours=30)),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], ActiveVisitConflictError)
    stored = await visit_repo.find_matching(VisitCriteria(practitioner_id="doc-smith"))
    assert [v.is_active for v in stored] == [True]


async def test_finishing_a_visit_frees_the_practitioner(
    create_visit, writer, lifecycle, people
) -> None:
    view = await create_visit.execute(people["alice"], _request())
    await CancelVisitUseCase(writer, lifecycle).execute(people["alice"], view.visit.visit_id.value)

    again = await create_visit.execute(people["bob"], _request(hours=48))
    assert again.visit.status is VisitStatus.SCHEDULED


@pytest.mark.parametrize("practitioner_id", ["doc-missing", "doc-retired", "pat-bob"])
async def test_create_requires_active_practitioner(create_visit, people, practitioner_id) -> None:
    with pytest.raises(ParticipantNotFoundError):
        await create_visit.execute(people["alice"], _request(practitioner_id=practitioner_id))


@pytest.mark.parametrize("actor", ["smith", "finance"])
async def test_only_patients_create_visits(create_visit, people, actor) -> None:
    with pytest.raises(AuthorizationError):
        await create_visit.execute(people[actor], _request())


async def test_create_rejects_past_date(create_visit, people) -> None:
    with pytest.raises(ValidationError):
        await create_visit.execute(people["alice"], _request(hours=-1))


@pytest.fixture
async def scheduled(create_visit, people):
    view = await create_visit.execute(people["alice"], _request())
    return view.visit.visit_id.value


async def test_practitioner_runs_visit_end_to_end(
    scheduled, writer, lifecycle, ledger, clock, people, visit_repo
) -> None:
    smith = people["smith"]
    await StartVisitUseCase(writer, lifecycle).execute(smith, scheduled)

    add = AddTreatmentUseCase(writer, ledger)
    view = await add.execute(smith, scheduled, AddTreatmentRequest(name="Consult", unit_price="50.00", quantity=2))
    first_id = view.visit.treatments[0].treatment_id.value
    view = await add.execute(smith, scheduled, AddTreatmentRequest(name="Dressing", unit_price="25.50"))
    assert view.visit.total_amount == Decimal("125.50")

    view = await UpdateTreatmentUseCase(writer, ledger).execute(
        smith, scheduled, first_id, {"quantity": 1}
    )
    assert view.visit.total_amount == Decimal("75.50")

    view = await RemoveTreatmentUseCase(writer, ledger).execute(smith, scheduled, first_id)
    assert view.visit.total_amount == Decimal("25.50")

    view = await UpdateVisitUseCase(writer, lifecycle).execute(
        smith, scheduled, {"diagnosis": "Minor laceration"}
    )
    assert view.visit.diagnosis == "Minor laceration"

    clock.advance(minutes=20)
    view = await CompleteVisitUseCase(writer, lifecycle).execute(smith, scheduled)
    assert view.visit.status is VisitStatus.COMPLETED
    assert view.visit.duration == 20

    stored = await visit_repo.find_by_id(VisitId.from_string(scheduled))
    assert stored.total_amount == Decimal("25.50")
    assert stored.status is VisitStatus.COMPLETED

    with pytest.raises(InvalidTransitionError):
        await add.execute(smith, scheduled, AddTreatmentRequest(name="Late", unit_price="1.00"))


async def test_rejected_change_is_not_persisted(scheduled, writer, ledger, people, visit_repo) -> None:
    with pytest.raises(ValidationError):
        await AddTreatmentUseCase(writer, ledger).execute(
            people["smith"], scheduled, AddTreatmentRequest(name="Bad", unit_price="-5")
        )
    stored = await visit_repo.find_by_id(VisitId.from_string(scheduled))
    assert stored.treatments == []


@pytest.mark.parametrize("actor", ["doe", "alice", "finance"])
async def test_only_owning_practitioner_starts(scheduled, writer, lifecycle, people, actor) -> None:
    with pytest.raises(AuthorizationError):
        await StartVisitUseCase(writer, lifecycle).execute(people[actor], scheduled)


@pytest.mark.parametrize("actor", ["bob", "doe", "finance"])
async def test_cancel_restricted_to_visit_participants(
    scheduled, writer, lifecycle, people, actor
) -> None:
    with pytest.raises(AuthorizationError):
        await CancelVisitUseCase(writer, lifecycle).execute(people[actor], scheduled)


async def test_practitioner_can_cancel(scheduled, writer, lifecycle, people) -> None:
    view = await CancelVisitUseCase(writer, lifecycle).execute(people["smith"], scheduled)
    assert view.visit.status is VisitStatus.CANCELLED


async def test_unknown_visit_is_not_found(writer, lifecycle, people) -> None:
    with pytest.raises(VisitNotFoundError):
        await StartVisitUseCase(writer, lifecycle).execute(people["smith"], VisitId.generate().value)


async def test_concurrent_treatment_adds_are_not_lost(
    scheduled, writer, ledger, people, visit_repo, directory
) -> None:
    add = AddTreatmentUseCase(writer, ledger)
    await asyncio.gather(
        *(
            add.execute(people["smith"], scheduled, AddTreatmentRequest(name=f"Item {i}", unit_price="1.25"))
            for i in range(8)
        )
    )
    view = await GetVisitUseCase(visit_repo, directory).execute(people["smith"], scheduled)
    assert len(view.visit.treatments) == 8
    assert view.visit.total_amount == Decimal("10.00")


async def test_finance_updates_payment_status(scheduled, writer, clock, people) -> None:
    clock.advance(hours=1)
    view = await UpdatePaymentStatusUseCase(writer, clock).execute(people["finance"], scheduled, "partial")
    assert view.visit.payment_status is PaymentStatus.PARTIAL
    assert view.visit.updated_at == clock.now


async def test_payment_status_is_validated_and_finance_only(scheduled, writer, people) -> None:
    use_case = UpdatePaymentStatusUseCase(writer)
    with pytest.raises(ValidationError):
        await use_case.execute(people["finance"], scheduled, "refunded")
    with pytest.raises(AuthorizationError):
        await use_case.execute(people["smith"], scheduled, "paid")


async def test_get_visit_enforces_ownership(scheduled, visit_repo, directory, people) -> None:
    use_case = GetVisitUseCase(visit_repo, directory)
    assert (await use_case.execute(people["alice"], scheduled)).patient_name == "Alice Smith"
    assert (await use_case.execute(people["finance"], scheduled)).visit.visit_id.value == scheduled
    for outsider in ("bob", "doe"):
        with pytest.raises(AuthorizationError):
            await use_case.execute(people[outsider], scheduled)


async def test_list_my_visits_newest_first(create_visit, visit_repo, directory, writer, lifecycle, people) -> None:
    first = await create_visit.execute(people["alice"], _request(hours=24))
    await CancelVisitUseCase(writer, lifecycle).execute(people["alice"], first.visit.visit_id.value)
    second = await create_visit.execute(people["alice"], _request(hours=72))
    await create_visit.execute(people["bob"], _request(practitioner_id="doc-doe"))

    use_case = ListMyVisitsUseCase(visit_repo, directory)
    mine = await use_case.execute(people["alice"])
    assert [v.visit.visit_id for v in mine] == [second.visit.visit_id, first.visit.visit_id]

    cancelled = await use_case.execute(people["alice"], status="cancelled")
    assert [v.visit.visit_id for v in cancelled] == [first.visit.visit_id]

    smith_visits = await use_case.execute(people["smith"])
    assert len(smith_visits) == 2

    with pytest.raises(AuthorizationError):
        await use_case.execute(people["finance"])
