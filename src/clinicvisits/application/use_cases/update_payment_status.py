"""Update Payment Status use case (finance staff)."""

import logging

from ...core.utils.clock import Clock, utc_now
from ...domain.entities.participant import Participant
from ...domain.entities.visit import Visit
from ...domain.enums import ParticipantRole, PaymentStatus
from ...domain.errors import ValidationError
from ..dto.visit_dto import VisitView
from ..services.access import require_role
from ..services.visit_writer import VisitWriter

logger = logging.getLogger(__name__)


def _require_finance(actor: Participant, visit: Visit) -> None:
    require_role(actor, ParticipantRole.FINANCE)


class UpdatePaymentStatusUseCase:
    """Set a visit's payment status. Allowed in any visit status."""

    def __init__(self, writer: VisitWriter, clock: Clock = utc_now):
        self._writer = writer
        self._clock = clock

    async def execute(self, actor: Participant, visit_id: str, payment_status: str) -> VisitView:
        try:
            new_status = PaymentStatus(payment_status)
        except ValueError:
            raise ValidationError(
                "Invalid payment status",
                field="payment_status",
                value=payment_status,
                allowed=[s.value for s in PaymentStatus],
            )

        def change(visit: Visit) -> PaymentStatus:
            previous = visit.payment_status
            visit.payment_status = new_status
            visit.touch(self._clock())
            return previous

        view, previous = await self._writer.apply(actor, visit_id, _require_finance, change)
        logger.info(
            "Payment status of visit %s changed from %s to %s by %s",
            visit_id,
            previous.value,
            new_status.value,
            actor.participant_id,
        )
        return view
