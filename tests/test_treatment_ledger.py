from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from clinicvisits.domain.errors import (
    InvalidTransitionError,
    TreatmentNotFoundError,
    ValidationError,
)
from clinicvisits.domain.enums import TreatmentCategory, VisitStatus
from clinicvisits.domain.value_objects.treatment_id import TreatmentId

from .conftest import NOW


@pytest.fixture
def visit(lifecycle):
    return lifecycle.create("pat-alice", "doc-smith", NOW + timedelta(days=1))


def _assert_ledger_consistent(visit) -> None:
    for treatment in visit.treatments:
        assert treatment.total_price == treatment.unit_price * treatment.quantity
    assert visit.total_amount == sum((t.total_price for t in visit.treatments), Decimal("0"))


def test_add_update_remove_keeps_total_in_step(ledger, visit) -> None:
    first = ledger.add_treatment(visit, name="Consult", unit_price="50.00", quantity=2)
    assert first.total_price == Decimal("100.00")
    assert visit.total_amount == Decimal("100.00")

    ledger.add_treatment(visit, name="Bandage", unit_price="25.50", quantity=1)
    assert visit.total_amount == Decimal("125.50")

    ledger.remove_treatment(visit, first.treatment_id)
    assert visit.total_amount == Decimal("25.50")
    assert [t.name for t in visit.treatments] == ["Bandage"]
    _assert_ledger_consistent(visit)


def test_update_recomputes_line_and_visit_totals(ledger, visit, clock) -> None:
    treatment = ledger.add_treatment(visit, name="X-ray", unit_price=40, category="imaging")
    clock.advance(minutes=5)

    updated = ledger.update_treatment(
        visit, treatment.treatment_id.value, {"quantity": 3, "unit_price": "12.25"}
    )

    assert updated.total_price == Decimal("36.75")
    assert updated.name == "X-ray"
    assert updated.category is TreatmentCategory.IMAGING
    assert updated.updated_at == clock.now
    assert updated.created_at == NOW
    assert visit.total_amount == Decimal("36.75")
    assert visit.updated_at == clock.now
    _assert_ledger_consistent(visit)


def test_update_leaves_visit_untouched_when_invalid(ledger, visit) -> None:
    treatment = ledger.add_treatment(visit, name="Lab panel", unit_price="30.00")

    with pytest.raises(ValidationError):
        ledger.update_treatment(visit, treatment.treatment_id, {"quantity": 0})

    assert visit.treatments[0].quantity == 1
    assert visit.total_amount == Decimal("30.00")


def test_update_rejects_unknown_fields(ledger, visit) -> None:
    treatment = ledger.add_treatment(visit, name="Lab panel", unit_price="30.00")
    with pytest.raises(ValidationError):
        ledger.update_treatment(visit, treatment.treatment_id, {"total_price": "1.00"})


def test_update_missing_treatment_is_not_found(ledger, visit) -> None:
    with pytest.raises(TreatmentNotFoundError):
        ledger.update_treatment(visit, TreatmentId.generate(), {"quantity": 2})
    with pytest.raises(TreatmentNotFoundError):
        ledger.update_treatment(visit, "not-a-uuid", {"quantity": 2})


def test_remove_absent_treatment_is_a_no_op(ledger, visit) -> None:
    ledger.add_treatment(visit, name="Consult", unit_price="10.00")

    assert ledger.remove_treatment(visit, TreatmentId.generate()) is None
    assert ledger.remove_treatment(visit, "garbage") is None
    assert len(visit.treatments) == 1
    assert visit.total_amount == Decimal("10.00")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": "Consult", "unit_price": "-1.00"},
        {"name": "Consult", "unit_price": "10.001"},
        {"name": "Consult", "unit_price": "10.00", "quantity": 0},
        {"name": "   ", "unit_price": "10.00"},
        {"name": "Consult", "unit_price": "10.00", "category": "surgery"},
    ],
)
def test_add_rejects_invalid_input(ledger, visit, kwargs) -> None:
    with pytest.raises(ValidationError):
        ledger.add_treatment(visit, **kwargs)
    assert visit.treatments == []
    assert visit.total_amount == Decimal("0.00")


def test_add_trims_name(ledger, visit) -> None:
    treatment = ledger.add_treatment(visit, name="  Consult  ", unit_price=0)
    assert treatment.name == "Consult"
    assert treatment.total_price == Decimal("0.00")


@pytest.mark.parametrize("terminal", ["complete", "cancel"])
def test_ledger_is_closed_on_terminal_visits(ledger, lifecycle, visit, terminal) -> None:
    treatment = ledger.add_treatment(visit, name="Consult", unit_price="10.00")
    getattr(lifecycle, terminal)(visit)
    assert visit.status in (VisitStatus.COMPLETED, VisitStatus.CANCELLED)

    with pytest.raises(InvalidTransitionError):
        ledger.add_treatment(visit, name="Late", unit_price="1.00")
    with pytest.raises(InvalidTransitionError):
        ledger.update_treatment(visit, treatment.treatment_id, {"quantity": 2})
    with pytest.raises(InvalidTransitionError):
        ledger.remove_treatment(visit, treatment.treatment_id)

    assert visit.total_amount == Decimal("10.00")


def test_recompute_total_repairs_bulk_edits(ledger, visit) -> None:
    treatment = ledger.add_treatment(visit, name="Consult", unit_price="10.00")
    treatment.quantity = 4

    assert ledger.recompute_total(visit) == Decimal("40.00")
    assert treatment.total_price == Decimal("40.00")


def test_repeated_cent_arithmetic_is_exact(ledger, visit) -> None:
    for _ in range(10):
        ledger.add_treatment(visit, name="Swab", unit_price=0.1)
    assert visit.total_amount == Decimal("1.00")


def test_huge_unit_price_is_a_validation_error(ledger, visit) -> None:
    with pytest.raises(ValidationError) as excinfo:
        ledger.add_treatment(visit, name="Implant", unit_price="1e30")
    assert excinfo.value.details["field"] == "unit_price"
    assert visit.treatments == []


def test_line_total_over_the_limit_is_rejected(ledger, visit) -> None:
    with pytest.raises(ValidationError) as excinfo:
        ledger.add_treatment(visit, name="Implant", unit_price="999999999999.99", quantity=1000)
    assert excinfo.value.details["field"] == "total_price"
    assert visit.total_amount == Decimal("0.00")


def test_visit_total_over_the_limit_leaves_ledger_unchanged(ledger, visit) -> None:
    first = ledger.add_treatment(visit, name="Surgery", unit_price="600000000000.00")

    with pytest.raises(ValidationError) as excinfo:
        ledger.add_treatment(visit, name="Surgery", unit_price="600000000000.00")
    assert excinfo.value.details["field"] == "total_amount"

    with pytest.raises(ValidationError):
        ledger.update_treatment(visit, first.treatment_id, {"quantity": 2})

    assert [t.quantity for t in visit.treatments] == [1]
    assert visit.total_amount == Decimal("600000000000.00")
    _assert_ledger_consistent(visit)
