"""Visit and treatment endpoints for patients and practitioners.

Domain errors propagate to the application's DomainError handler.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, status

from clinicvisits.application.dto.visit_dto import (
    AddTreatmentRequest as AddTreatmentDTO,
    CreateVisitRequest as CreateVisitDTO,
)
from clinicvisits.application.use_cases.change_visit_status import (
    CancelVisitUseCase,
    CompleteVisitUseCase,
    StartVisitUseCase,
)
from clinicvisits.application.use_cases.create_visit import CreateVisitUseCase
from clinicvisits.application.use_cases.get_visits import (
    GetVisitUseCase,
    ListMyVisitsUseCase,
)
from clinicvisits.application.use_cases.manage_treatments import (
    AddTreatmentUseCase,
    RemoveTreatmentUseCase,
    UpdateTreatmentUseCase,
)
from clinicvisits.application.use_cases.update_visit import UpdateVisitUseCase

from ..deps import (
    CurrentParticipantDep,
    ParticipantDirectoryDep,
    TreatmentLedgerDep,
    VisitLifecycleDep,
    VisitRepositoryDep,
    VisitWriterDep,
)
from ..schemas.visit import (
    AddTreatmentRequest,
    CreateVisitRequest,
    ErrorResponse,
    UpdateTreatmentRequest,
    UpdateVisitRequest,
)

router = APIRouter(prefix="/visits", tags=["visits"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation error"},
    403: {"model": ErrorResponse, "description": "Not allowed for this participant"},
    404: {"model": ErrorResponse, "description": "Visit or treatment not found"},
    409: {"model": ErrorResponse, "description": "Invalid transition or conflict"},
}


@router.post("/", status_code=status.HTTP_201_CREATED, responses=ERROR_RESPONSES)
async def create_visit(
    request: CreateVisitRequest,
    actor: CurrentParticipantDep,
    visit_repo: VisitRepositoryDep,
    directory: ParticipantDirectoryDep,
    lifecycle: VisitLifecycleDep,
) -> Dict[str, Any]:
    """Schedule a visit with a practitioner (patients only)."""
    use_case = CreateVisitUseCase(visit_repo, directory, lifecycle)
    result = await use_case.execute(
        actor,
        CreateVisitDTO(
            practitioner_id=request.practitioner_id,
            scheduled_date=request.scheduled_date,
            chief_complaint=request.chief_complaint,
        ),
    )
    return result.to_record()


@router.get("/", responses=ERROR_RESPONSES)
async def list_my_visits(
    actor: CurrentParticipantDep,
    visit_repo: VisitRepositoryDep,
    directory: ParticipantDirectoryDep,
    visit_status: Optional[str] = Query(None, alias="status"),
) -> List[Dict[str, Any]]:
    """List the caller's own visits, newest first."""
    use_case = ListMyVisitsUseCase(visit_repo, directory)
    views = await use_case.execute(actor, status=visit_status)
    return [view.to_record() for view in views]


@router.get("/{visit_id}", responses=ERROR_RESPONSES)
async def get_visit(
    visit_id: str,
    actor: CurrentParticipantDep,
    visit_repo: VisitRepositoryDep,
    directory: ParticipantDirectoryDep,
) -> Dict[str, Any]:
    use_case = GetVisitUseCase(visit_repo, directory)
    return (await use_case.execute(actor, visit_id)).to_record()


@router.patch("/{visit_id}", responses=ERROR_RESPONSES)
async def update_visit(
    visit_id: str,
    request: UpdateVisitRequest,
    actor: CurrentParticipantDep,
    writer: VisitWriterDep,
    lifecycle: VisitLifecycleDep,
) -> Dict[str, Any]:
    """Update chief complaint, diagnosis or notes. Omitted fields are unchanged."""
    use_case = UpdateVisitUseCase(writer, lifecycle)
    result = await use_case.execute(actor, visit_id, request.model_dump(exclude_unset=True))
    return result.to_record()


@router.post("/{visit_id}/start", responses=ERROR_RESPONSES)
async def start_visit(
    visit_id: str,
    actor: CurrentParticipantDep,
    writer: VisitWriterDep,
    lifecycle: VisitLifecycleDep,
) -> Dict[str, Any]:
    use_case = StartVisitUseCase(writer, lifecycle)
    return (await use_case.execute(actor, visit_id)).to_record()


@router.post("/{visit_id}/complete", responses=ERROR_RESPONSES)
async def complete_visit(
    visit_id: str,
    actor: CurrentParticipantDep,
    writer: VisitWriterDep,
    lifecycle: VisitLifecycleDep,
) -> Dict[str, Any]:
    use_case = CompleteVisitUseCase(writer, lifecycle)
    return (await use_case.execute(actor, visit_id)).to_record()


@router.post("/{visit_id}/cancel", responses=ERROR_RESPONSES)
async def cancel_visit(
    visit_id: str,
    actor: CurrentParticipantDep,
    writer: VisitWriterDep,
    lifecycle: VisitLifecycleDep,
) -> Dict[str, Any]:
    use_case = CancelVisitUseCase(writer, lifecycle)
    return (await use_case.execute(actor, visit_id)).to_record()


@router.post(
    "/{visit_id}/treatments",
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def add_treatment(
    visit_id: str,
    request: AddTreatmentRequest,
    actor: CurrentParticipantDep,
    writer: VisitWriterDep,
    ledger: TreatmentLedgerDep,
) -> Dict[str, Any]:
    use_case = AddTreatmentUseCase(writer, ledger)
    result = await use_case.execute(
        actor,
        visit_id,
        AddTreatmentDTO(
            name=request.name,
            unit_price=request.unit_price,
            quantity=request.quantity,
            category=request.category,
            description=request.description,
        ),
    )
    return result.to_record()


@router.patch("/{visit_id}/treatments/{treatment_id}", responses=ERROR_RESPONSES)
async def update_treatment(
    visit_id: str,
    treatment_id: str,
    request: UpdateTreatmentRequest,
    actor: CurrentParticipantDep,
    writer: VisitWriterDep,
    ledger: TreatmentLedgerDep,
) -> Dict[str, Any]:
    use_case = UpdateTreatmentUseCase(writer, ledger)
    result = await use_case.execute(
        actor, visit_id, treatment_id, request.model_dump(exclude_unset=True)
    )
    return result.to_record()


@router.delete("/{visit_id}/treatments/{treatment_id}", responses=ERROR_RESPONSES)
async def remove_treatment(
    visit_id: str,
    treatment_id: str,
    actor: CurrentParticipantDep,
    writer: VisitWriterDep,
    ledger: TreatmentLedgerDep,
) -> Dict[str, Any]:
    """Remove a treatment. Removing one that is not on the visit is a no-op."""
    use_case = RemoveTreatmentUseCase(writer, ledger)
    return (await use_case.execute(actor, visit_id, treatment_id)).to_record()
