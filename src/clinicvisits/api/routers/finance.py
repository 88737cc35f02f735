"""Finance endpoints: search, dashboard, export and payment status."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query

from clinicvisits.application.dto.finance_dto import ExportQuery, VisitSearchQuery
from clinicvisits.application.use_cases.finance_reports import (
    ExportVisitsUseCase,
    GetDashboardUseCase,
    GetVisitDetailsUseCase,
    SearchVisitsUseCase,
)
from clinicvisits.application.use_cases.update_payment_status import (
    UpdatePaymentStatusUseCase,
)

from ..deps import (
    ClockDep,
    CurrentParticipantDep,
    FinanceAggregatorDep,
    SettingsDep,
    VisitWriterDep,
)
from ..schemas.finance import UpdatePaymentStatusRequest
from ..schemas.visit import ErrorResponse

router = APIRouter(prefix="/finance", tags=["finance"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid filter or paging"},
    403: {"model": ErrorResponse, "description": "Finance staff only"},
    404: {"model": ErrorResponse, "description": "Visit not found"},
}


@router.get("/visits", responses=ERROR_RESPONSES)
async def search_visits(
    actor: CurrentParticipantDep,
    aggregator: FinanceAggregatorDep,
    settings: SettingsDep,
    visit_id: Optional[str] = Query(None, alias="visitId"),
    doctor_name: Optional[str] = Query(None, alias="doctorName"),
    patient_name: Optional[str] = Query(None, alias="patientName"),
    visit_status: Optional[str] = Query(None, alias="status"),
    payment_status: Optional[str] = Query(None, alias="paymentStatus"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    sort_by: str = Query("scheduledDate", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
) -> Dict[str, Any]:
    """
    Search visits with structural and name filters.

    Name filters are case-insensitive substring matches. Statistics cover
    the whole filtered set, not just the returned page.
    """
    query = VisitSearchQuery(
        visit_id=visit_id,
        doctor_name=doctor_name,
        patient_name=patient_name,
        status=visit_status,
        payment_status=payment_status,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit if limit is not None else settings.finance.default_page_size,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    result = await SearchVisitsUseCase(aggregator).execute(actor, query)
    return result.to_record()


@router.get("/dashboard", responses=ERROR_RESPONSES)
async def get_dashboard(
    actor: CurrentParticipantDep, aggregator: FinanceAggregatorDep
) -> Dict[str, Any]:
    dashboard = await GetDashboardUseCase(aggregator).execute(actor)
    return dashboard.to_record()


@router.get("/export", responses=ERROR_RESPONSES)
async def export_visits(
    actor: CurrentParticipantDep,
    aggregator: FinanceAggregatorDep,
    visit_status: Optional[str] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
) -> List[Dict[str, Any]]:
    rows = await ExportVisitsUseCase(aggregator).execute(
        actor, ExportQuery(status=visit_status, start_date=start_date, end_date=end_date)
    )
    return [row.to_record() for row in rows]


@router.get("/visits/{visit_id}", responses=ERROR_RESPONSES)
async def get_visit_details(
    visit_id: str, actor: CurrentParticipantDep, aggregator: FinanceAggregatorDep
) -> Dict[str, Any]:
    view = await GetVisitDetailsUseCase(aggregator).execute(actor, visit_id)
    return view.to_record()


@router.patch("/visits/{visit_id}/payment", responses=ERROR_RESPONSES)
async def update_payment_status(
    visit_id: str,
    request: UpdatePaymentStatusRequest,
    actor: CurrentParticipantDep,
    writer: VisitWriterDep,
    clock: ClockDep,
) -> Dict[str, Any]:
    use_case = UpdatePaymentStatusUseCase(writer, clock)
    view = await use_case.execute(actor, visit_id, request.payment_status)
    return view.to_record()
