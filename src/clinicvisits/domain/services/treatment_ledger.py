"""Treatment ledger: billable line items of a visit and the visit total.

Every mutating call validates first and only then touches the visit, so a
rejected call leaves the visit exactly as it was. Each successful mutation
ends with ``recompute_total``.
"""

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from ...core.utils.clock import Clock, utc_now
from ..entities.treatment import Treatment
from ..entities.visit import Visit
from ..enums import TreatmentCategory
from ..errors import InvalidTransitionError, TreatmentNotFoundError, ValidationError
from ..value_objects.money import MoneyInput, ensure_within_limit, money_sum
from ..value_objects.treatment_id import TreatmentId

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "description", "quantity", "unit_price", "category"})


def recompute_total(visit: Visit) -> Decimal:
    """Set ``visit.total_amount`` to the sum of its treatments' total prices."""
    for treatment in visit.treatments:
        treatment.recompute_total_price()
    visit.total_amount = money_sum(t.total_price for t in visit.treatments)
    return visit.total_amount


def ensure_total_within_limit(treatments: Iterable[Treatment]) -> Decimal:
    return ensure_within_limit(
        money_sum(t.total_price for t in treatments), field="total_amount"
    )


def ensure_ledger_open(visit: Visit, action: str) -> None:
    if visit.is_terminal:
        raise InvalidTransitionError(
            f"Cannot {action} visit with status: {visit.status.value}",
            current_status=visit.status.value,
            action=action,
        )


def _lookup(visit: Visit, treatment_id: Any) -> Optional[Treatment]:
    if not isinstance(treatment_id, TreatmentId):
        try:
            treatment_id = TreatmentId.from_string(treatment_id)
        except ValidationError:
            # A malformed id cannot belong to this visit
            return None
    return visit.find_treatment(treatment_id)


class TreatmentLedger:
    """Adds, updates and removes treatments on a visit."""

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock

    def add_treatment(
        self,
        visit: Visit,
        name: str,
        unit_price: MoneyInput,
        quantity: int = 1,
        category: Any = TreatmentCategory.OTHER,
        description: Optional[str] = None,
    ) -> Treatment:
        ensure_ledger_open(visit, "add treatment to")
        now = self._clock()
        treatment = Treatment.create(
            name=name,
            unit_price=unit_price,
            quantity=quantity,
            category=category,
            description=description,
            at=now,
        )
        ensure_total_within_limit([*visit.treatments, treatment])
        visit.treatments.append(treatment)
        recompute_total(visit)
        visit.touch(now)
        return treatment

    def update_treatment(
        self, visit: Visit, treatment_id: Any, changes: Mapping[str, Any]
    ) -> Treatment:
        """Apply a partial update; keys absent from ``changes`` stay as they are."""
        ensure_ledger_open(visit, "update treatment in")
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown treatment fields: {', '.join(sorted(unknown))}",
                fields=sorted(unknown),
            )

        current = _lookup(visit, treatment_id)
        if current is None:
            raise TreatmentNotFoundError(visit.visit_id.value, str(treatment_id))

        now = self._clock()
        # replace() re-runs validation and the total price computation
        updated = replace(current, **dict(changes), updated_at=now)

        index = visit.treatments.index(current)
        ensure_total_within_limit(
            updated if t is current else t for t in visit.treatments
        )
        visit.treatments[index] = updated
        recompute_total(visit)
        visit.touch(now)
        return updated

    def remove_treatment(self, visit: Visit, treatment_id: Any) -> Optional[Treatment]:
        """Remove a treatment if present. Absent ids are not an error."""
        ensure_ledger_open(visit, "delete treatment from")
        removed = _lookup(visit, treatment_id)
        if removed is not None:
            visit.treatments.remove(removed)
        else:
            logger.debug(
                "Treatment %s not present on visit %s", treatment_id, visit.visit_id
            )

        recompute_total(visit)
        visit.touch(self._clock())
        return removed

    @staticmethod
    def recompute_total(visit: Visit) -> Decimal:
        return recompute_total(visit)
