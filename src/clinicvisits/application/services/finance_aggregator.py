"""Finance aggregation and reporting over the visit collection.

The search runs a fixed pipeline; order matters because the name filters
need the participant join:

    1. structural filters (pushed down to the repository)
    2. join patient and practitioner names
    3. name substring filters, case-insensitive
    4. total count
    5. sort, ties broken by visit id ascending
    6. skip / limit
    7. statistics over the pre-pagination set

The aggregator never writes. Every stage below is a plain function so it can
be exercised on its own.
"""

import logging
import math
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from ...core.utils.clock import Clock, ensure_utc, utc_now
from ...domain.entities.participant import Participant
from ...domain.entities.visit import Visit
from ...domain.enums import PaymentStatus, VisitStatus
from ...domain.errors import ValidationError, VisitNotFoundError
from ...domain.value_objects.money import ZERO, money_sum
from ...domain.value_objects.visit_id import VisitId
from ..dto.finance_dto import (
    CategoryRevenue,
    Dashboard,
    ExportQuery,
    ExportRow,
    OverallStats,
    PaymentBreakdown,
    PeriodStats,
    PractitionerRevenue,
    SearchStatistics,
    VisitSearchQuery,
    VisitSearchResult,
)
from ..dto.visit_dto import VisitView
from ..ports.repositories.participant_repo import ParticipantDirectory
from ..ports.repositories.visit_repo import VisitCriteria, VisitRepository

logger = logging.getLogger(__name__)

SORT_KEYS: Dict[str, Callable[[VisitView], Any]] = {
    "scheduledDate": lambda v: v.visit.scheduled_date,
    "createdAt": lambda v: v.visit.created_at,
    "updatedAt": lambda v: v.visit.updated_at,
    "startTime": lambda v: v.visit.start_time,
    "endTime": lambda v: v.visit.end_time,
    "totalAmount": lambda v: v.visit.total_amount,
    "status": lambda v: v.visit.status.value,
    "paymentStatus": lambda v: v.visit.payment_status.value,
    "patientName": lambda v: (v.patient_name or "").lower(),
    "doctorName": lambda v: (v.practitioner_name or "").lower(),
}
SORT_ORDERS = ("asc", "desc")


def _parse_enum(enum_cls, value: Optional[str], field: str):
    if value is None or value == "":
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {field.replace('_', ' ')}", field=field, value=value)


def build_criteria(
    visit_id: Optional[str] = None,
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> VisitCriteria:
    """Stage 1: validate and assemble the structural filters."""
    return VisitCriteria(
        visit_id=VisitId.from_string(visit_id) if visit_id else None,
        status=_parse_enum(VisitStatus, status, "status"),
        payment_status=_parse_enum(PaymentStatus, payment_status, "payment_status"),
        start_date=ensure_utc(start_date) if start_date else None,
        end_date=ensure_utc(end_date) if end_date else None,
    )


def join_participants(
    visits: Iterable[Visit], participants: Dict[str, Participant], inner: bool = True
) -> List[VisitView]:
    """Stage 2: attach participants. With ``inner`` unresolved visits are dropped."""
    views = []
    for visit in visits:
        patient = participants.get(visit.patient_id)
        practitioner = participants.get(visit.practitioner_id)
        if inner and (patient is None or practitioner is None):
            logger.debug("Dropping visit %s with unresolved participants", visit.visit_id)
            continue
        views.append(VisitView(visit=visit, patient=patient, practitioner=practitioner))
    return views


def filter_by_names(
    views: Iterable[VisitView],
    patient_name: Optional[str] = None,
    doctor_name: Optional[str] = None,
) -> List[VisitView]:
    """Stage 3: case-insensitive substring match on joined names."""
    patient_needle = patient_name.casefold() if patient_name else None
    doctor_needle = doctor_name.casefold() if doctor_name else None
    result = []
    for view in views:
        if patient_needle and patient_needle not in (view.patient_name or "").casefold():
            continue
        if doctor_needle and doctor_needle not in (view.practitioner_name or "").casefold():
            continue
        result.append(view)
    return result


def sort_views(views: Sequence[VisitView], sort_by: str, sort_order: str) -> List[VisitView]:
    """Stage 5: sort by the requested key; equal keys keep ascending id order.

    Missing values sort lowest, as a document store would order nulls.
    """
    if sort_by not in SORT_KEYS:
        raise ValidationError(
            f"Invalid sort field: {sort_by}", field="sort_by", allowed=sorted(SORT_KEYS)
        )
    if sort_order not in SORT_ORDERS:
        raise ValidationError("Sort order must be asc or desc", field="sort_order")

    key = SORT_KEYS[sort_by]
    by_id = sorted(views, key=lambda v: v.visit.visit_id.value)
    # Python's sort is stable for reverse=True too, so id order survives ties
    return sorted(
        by_id,
        key=lambda v: (key(v) is not None, key(v)),
        reverse=sort_order == "desc",
    )


def paginate(views: Sequence[VisitView], page: int, limit: int) -> List[VisitView]:
    """Stage 6."""
    skip = (page - 1) * limit
    return list(views[skip : skip + limit])


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit)


def compute_statistics(views: Iterable[VisitView]) -> SearchStatistics:
    """Stage 7: revenue and counts over the filtered set."""
    stats = SearchStatistics()
    for view in views:
        visit = view.visit
        stats.total_revenue += visit.total_amount
        if visit.status is VisitStatus.COMPLETED:
            stats.completed_visits += 1
        if visit.payment_status is PaymentStatus.PENDING:
            stats.pending_payments += 1
        elif visit.payment_status is PaymentStatus.PARTIAL:
            stats.partial_payments += 1
        elif visit.payment_status is PaymentStatus.PAID:
            stats.paid_visits += 1
    return stats


def _completed_revenue(visits: Iterable[Visit]) -> Decimal:
    return money_sum(v.total_amount for v in visits if v.status is VisitStatus.COMPLETED)


def compute_overall(visits: Sequence[Visit]) -> OverallStats:
    counts = defaultdict(int)
    for visit in visits:
        counts[visit.status] += 1
    completed = [v for v in visits if v.status is VisitStatus.COMPLETED]
    return OverallStats(
        total_visits=len(visits),
        scheduled_visits=counts[VisitStatus.SCHEDULED],
        in_progress_visits=counts[VisitStatus.IN_PROGRESS],
        completed_visits=counts[VisitStatus.COMPLETED],
        cancelled_visits=counts[VisitStatus.CANCELLED],
        total_revenue=_completed_revenue(completed),
        pending_payments=money_sum(
            v.total_amount for v in completed if v.payment_status is PaymentStatus.PENDING
        ),
        paid_amount=money_sum(
            v.total_amount for v in completed if v.payment_status is PaymentStatus.PAID
        ),
    )


def compute_period(visits: Iterable[Visit], since: datetime) -> PeriodStats:
    """Visits created at or after ``since``; revenue counts completed ones only."""
    in_period = [v for v in visits if v.created_at >= since]
    return PeriodStats(visits=len(in_period), revenue=_completed_revenue(in_period))


def compute_practitioner_revenue(
    visits: Iterable[Visit], participants: Dict[str, Participant], top: int
) -> List[PractitionerRevenue]:
    rows: Dict[str, PractitionerRevenue] = {}
    for visit in visits:
        if visit.status is not VisitStatus.COMPLETED:
            continue
        practitioner = participants.get(visit.practitioner_id)
        if practitioner is None:
            continue
        row = rows.get(visit.practitioner_id)
        if row is None:
            row = rows[visit.practitioner_id] = PractitionerRevenue(
                practitioner_id=visit.practitioner_id,
                practitioner_name=practitioner.name,
                specialization=practitioner.specialization,
            )
        row.total_visits += 1
        row.total_revenue += visit.total_amount
    ranked = sorted(rows.values(), key=lambda r: (-r.total_revenue, r.practitioner_id))
    return ranked[:top]


def compute_payment_breakdown(visits: Iterable[Visit]) -> List[PaymentBreakdown]:
    rows: Dict[PaymentStatus, PaymentBreakdown] = {}
    for visit in visits:
        if visit.status is not VisitStatus.COMPLETED:
            continue
        row = rows.setdefault(
            visit.payment_status, PaymentBreakdown(status=visit.payment_status.value)
        )
        row.count += 1
        row.amount += visit.total_amount
    return [rows[status] for status in PaymentStatus if status in rows]


def compute_category_revenue(visits: Iterable[Visit]) -> List[CategoryRevenue]:
    rows: Dict[str, CategoryRevenue] = {}
    for visit in visits:
        if visit.status is not VisitStatus.COMPLETED:
            continue
        for treatment in visit.treatments:
            category = treatment.category.value
            row = rows.setdefault(category, CategoryRevenue(category=category))
            row.count += 1
            row.revenue += treatment.total_price
    return sorted(rows.values(), key=lambda r: (-r.revenue, r.category))


class FinanceAggregator:
    """Read-only reporting over visits."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        participant_directory: ParticipantDirectory,
        clock: Clock = utc_now,
        reporting_timezone: str = "UTC",
        max_page_size: int = 100,
        top_practitioners: int = 10,
        recent_visits: int = 10,
    ):
        self._visits = visit_repository
        self._participants = participant_directory
        self._clock = clock
        self._tz = ZoneInfo(reporting_timezone)
        self._max_page_size = max_page_size
        self._top_practitioners = top_practitioners
        self._recent_visits = recent_visits

    async def search(self, query: VisitSearchQuery) -> VisitSearchResult:
        self._validate_paging(query.page, query.limit)
        criteria = build_criteria(
            visit_id=query.visit_id,
            status=query.status,
            payment_status=query.payment_status,
            start_date=query.start_date,
            end_date=query.end_date,
        )

        visits = await self._visits.find_matching(criteria)
        participants = await self._resolve(visits)
        views = join_participants(visits, participants)
        views = filter_by_names(views, query.patient_name, query.doctor_name)
        total = len(views)
        ordered = sort_views(views, query.sort_by, query.sort_order)
        items = paginate(ordered, query.page, query.limit)

        logger.info(
            "Finance search matched %d visits (page %d, limit %d)",
            total,
            query.page,
            query.limit,
        )
        return VisitSearchResult(
            items=items,
            total=total,
            page=query.page,
            pages=page_count(total, query.limit),
            statistics=compute_statistics(views),
        )

    async def dashboard(self) -> Dashboard:
        visits = await self._visits.find_matching(VisitCriteria())
        participants = await self._resolve(visits)

        now_local = self._clock().astimezone(self._tz)
        start_of_today = now_local.replace(hour=0, minute=0, second=0, microsecond=0)
        start_of_month = start_of_today.replace(day=1)

        recent = sorted(visits, key=lambda v: v.visit_id.value)
        recent = sorted(recent, key=lambda v: v.created_at, reverse=True)
        recent = recent[: self._recent_visits]

        return Dashboard(
            overall=compute_overall(visits),
            today=compute_period(visits, start_of_today),
            this_month=compute_period(visits, start_of_month),
            revenue_by_doctor=compute_practitioner_revenue(
                visits, participants, self._top_practitioners
            ),
            payment_breakdown=compute_payment_breakdown(visits),
            treatment_categories=compute_category_revenue(visits),
            recent_visits=join_participants(recent, participants, inner=False),
        )

    async def export(self, query: ExportQuery) -> List[ExportRow]:
        criteria = build_criteria(
            status=query.status, start_date=query.start_date, end_date=query.end_date
        )
        visits = await self._visits.find_matching(criteria)
        participants = await self._resolve(visits)
        views = sort_views(
            join_participants(visits, participants, inner=False), "scheduledDate", "desc"
        )
        return [
            ExportRow(
                visit_id=view.visit.visit_id.value,
                patient_name=view.patient_name,
                patient_email=view.patient.email if view.patient else None,
                doctor_name=view.practitioner_name,
                doctor_specialization=(
                    view.practitioner.specialization if view.practitioner else None
                ),
                scheduled_date=view.visit.scheduled_date,
                status=view.visit.status.value,
                diagnosis=view.visit.diagnosis,
                total_amount=view.visit.total_amount,
                payment_status=view.visit.payment_status.value,
                treatments_count=len(view.visit.treatments),
            )
            for view in views
        ]

    async def visit_details(self, visit_id: str) -> VisitView:
        visit = await self._visits.find_by_id(VisitId.from_string(visit_id))
        if visit is None:
            raise VisitNotFoundError(visit_id)
        participants = await self._resolve([visit])
        return join_participants([visit], participants, inner=False)[0]

    async def _resolve(self, visits: Sequence[Visit]) -> Dict[str, Participant]:
        ids = {v.patient_id for v in visits} | {v.practitioner_id for v in visits}
        if not ids:
            return {}
        return await self._participants.resolve_many(ids)

    def _validate_paging(self, page: int, limit: int) -> None:
        if isinstance(page, bool) or not isinstance(page, int) or page < 1:
            raise ValidationError("Page must be at least 1", field="page")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError("Limit must be at least 1", field="limit")
        if limit > self._max_page_size:
            raise ValidationError(
                f"Limit cannot exceed {self._max_page_size}",
                field="limit",
                max_value=self._max_page_size,
            )
