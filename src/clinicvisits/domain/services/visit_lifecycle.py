"""Visit lifecycle: status transitions and clinical text updates.

    scheduled -> in_progress -> completed
    scheduled | in_progress -> cancelled

``completed`` and ``cancelled`` are terminal. Completing straight from
``scheduled`` is allowed unless ``allow_direct_completion`` is turned off.

The one-active-visit-per-practitioner rule is not checked here; it needs the
store and is enforced atomically by the visit repository on insert.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, FrozenSet, Mapping, Optional

from ...core.utils.clock import Clock, ensure_utc, utc_now
from ..entities.visit import Visit
from ..enums import VisitStatus
from ..errors import InvalidTransitionError, ValidationError
from ..value_objects.visit_id import VisitId
from .treatment_ledger import recompute_total

TRANSITIONS: Dict[VisitStatus, FrozenSet[VisitStatus]] = {
    VisitStatus.SCHEDULED: frozenset({VisitStatus.IN_PROGRESS, VisitStatus.CANCELLED}),
    VisitStatus.IN_PROGRESS: frozenset({VisitStatus.COMPLETED, VisitStatus.CANCELLED}),
    VisitStatus.COMPLETED: frozenset(),
    VisitStatus.CANCELLED: frozenset(),
}

CLINICAL_FIELDS = ("chief_complaint", "diagnosis", "notes")


@dataclass(frozen=True)
class TextLimits:
    chief_complaint: int = 1000
    diagnosis: int = 2000
    notes: int = 5000


def _clean_text(value: Any, field: str, limit: int) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be text", field=field)
    value = value.strip()
    if len(value) > limit:
        label = field.replace("_", " ").capitalize()
        raise ValidationError(
            f"{label} cannot exceed {limit} characters", field=field, max_length=limit
        )
    return value


class VisitLifecycle:
    """Creates visits and moves them through their statuses."""

    def __init__(
        self,
        clock: Clock = utc_now,
        allow_direct_completion: bool = True,
        text_limits: TextLimits = TextLimits(),
    ):
        self._clock = clock
        self._limits = text_limits
        self._transitions = dict(TRANSITIONS)
        if allow_direct_completion:
            self._transitions[VisitStatus.SCHEDULED] = TRANSITIONS[
                VisitStatus.SCHEDULED
            ] | {VisitStatus.COMPLETED}

    def allowed_transitions(self, status: VisitStatus) -> FrozenSet[VisitStatus]:
        return self._transitions[VisitStatus(status)]

    def can_transition(self, current: VisitStatus, target: VisitStatus) -> bool:
        return VisitStatus(target) in self.allowed_transitions(current)

    def create(
        self,
        patient_id: str,
        practitioner_id: str,
        scheduled_date: datetime,
        chief_complaint: Optional[str] = None,
    ) -> Visit:
        """Build a new scheduled visit. The caller persists it."""
        if not isinstance(scheduled_date, datetime):
            raise ValidationError("Scheduled date is required", field="scheduled_date")

        now = self._clock()
        scheduled_date = ensure_utc(scheduled_date)
        if scheduled_date < now:
            raise ValidationError(
                "Scheduled date cannot be in the past",
                field="scheduled_date",
                value=scheduled_date.isoformat(),
            )

        visit = Visit(
            visit_id=VisitId.generate(),
            patient_id=patient_id,
            practitioner_id=practitioner_id,
            scheduled_date=scheduled_date,
            status=VisitStatus.SCHEDULED,
            chief_complaint=_clean_text(
                chief_complaint, "chief_complaint", self._limits.chief_complaint
            ),
            created_at=now,
            updated_at=now,
        )
        recompute_total(visit)
        return visit

    def start(self, visit: Visit) -> Visit:
        now = self._transition(visit, VisitStatus.IN_PROGRESS, "start")
        visit.start_time = now
        return visit

    def complete(self, visit: Visit) -> Visit:
        now = self._transition(visit, VisitStatus.COMPLETED, "complete")
        visit.end_time = now
        return visit

    def cancel(self, visit: Visit) -> Visit:
        self._transition(visit, VisitStatus.CANCELLED, "cancel")
        return visit

    def update_clinical_fields(self, visit: Visit, changes: Mapping[str, Any]) -> Visit:
        """Overwrite the provided clinical text fields; omitted keys are untouched.

        An empty string clears a field.
        """
        if visit.is_terminal:
            raise InvalidTransitionError(
                f"Cannot update visit with status: {visit.status.value}",
                current_status=visit.status.value,
                action="update",
            )
        unknown = set(changes) - set(CLINICAL_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown visit fields: {', '.join(sorted(unknown))}",
                fields=sorted(unknown),
            )

        cleaned = {
            name: _clean_text(value, name, getattr(self._limits, name))
            for name, value in changes.items()
        }
        for name, value in cleaned.items():
            setattr(visit, name, value)
        visit.touch(self._clock())
        return visit

    def _transition(self, visit: Visit, target: VisitStatus, action: str) -> datetime:
        if not self.can_transition(visit.status, target):
            raise InvalidTransitionError(
                f"Cannot {action} visit with status: {visit.status.value}",
                current_status=visit.status.value,
                action=action,
            )
        now = self._clock()
        visit.status = target
        recompute_total(visit)
        visit.touch(now)
        return now
