"""Control sampling workflow endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from api.deps import get_repository
from api.errors import to_http_exception
from models.control import ControlDescriptor, ControlDescriptorBase
from models.enums import PeriodType, SubmissionStatus
from models.evidence_request import EvidenceRequest
from models.evidence_submission import EvidenceSubmission, EvidenceSubmissionCreate
from models.generated_sample import GeneratedSample
from models.sampling_classification import SamplingClassification
from models.sampling_configuration import SamplingConfiguration
from repos.sampling_repo import SamplingRepository
from services import sampling_service
from services.errors import EngineWarning, SamplingError
from services.sampling_service import ControlSamplingSummary

router = APIRouter()


# ============================================================
# Schemas
# ============================================================


class ControlRegistration(BaseModel):
    descriptor: ControlDescriptor
    classification: SamplingClassification


class ConfigureRequest(BaseModel):
    audit_start: date
    audit_end: date
    period_type: PeriodType | None = None
    fiscal_year_start_month: int | None = Field(default=None, ge=1, le=12)
    seed: int | None = None
    minimum_interval_days: int | None = Field(default=None, ge=0)
    created_by: str = "auditor"


class GenerateRequest(BaseModel):
    config_id: UUID | None = None
    performed_by: str = "auditor"


class GenerateResponse(BaseModel):
    samples: list[GeneratedSample]
    warnings: list[EngineWarning]


class ApproveRequest(BaseModel):
    config_id: UUID | None = None
    approved_by: str = "auditor"


class EvidenceRequestCreate(BaseModel):
    config_id: UUID | None = None
    created_by: str = "auditor"
    due_in_days: int | None = Field(default=None, ge=0)
    title: str | None = None
    instructions: str | None = None


class ReviewRequest(BaseModel):
    status: SubmissionStatus
    reviewed_by: str = "auditor"
    notes: str | None = None


# ============================================================
# Endpoints
# ============================================================


@router.put("/controls/{control_id}", response_model=ControlRegistration)
async def register_control_endpoint(
    control_id: str,
    payload: ControlDescriptorBase,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Register or replace a control descriptor.

    Returns:
        The stored descriptor and its cached 12-month classification
    """
    records = await sampling_service.register_control(repo, control_id, payload)
    return ControlRegistration(
        descriptor=records.descriptor,
        classification=records.classification,
    )


@router.get("/controls/{control_id}/sampling", response_model=ControlSamplingSummary)
async def get_sampling_status_endpoint(
    control_id: str,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Get the control's workflow status, evidence progress, active
    configuration, samples and evidence requests.

    Raises:
        404 if the control is not registered.
    """
    try:
        return await sampling_service.get_control_status(repo, control_id)
    except SamplingError as e:
        raise to_http_exception(e)


@router.post(
    "/controls/{control_id}/sampling/configure",
    response_model=SamplingConfiguration,
    status_code=status.HTTP_201_CREATED,
)
async def configure_sampling_endpoint(
    control_id: str,
    payload: ConfigureRequest,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Create the control's draft sampling configuration.

    Idempotent: the active configuration is returned if one exists.

    Raises:
        404 if the control is not registered.
        409 if the control does not require sampling.
        400 if the audit window is invalid.
    """
    try:
        return await sampling_service.configure_control(
            repo,
            control_id,
            payload.audit_start,
            payload.audit_end,
            created_by=payload.created_by,
            period_type=payload.period_type,
            fiscal_year_start_month=payload.fiscal_year_start_month,
            seed=payload.seed,
            minimum_interval_days=payload.minimum_interval_days,
        )
    except SamplingError as e:
        raise to_http_exception(e)


@router.post(
    "/controls/{control_id}/sampling/reconfigure",
    response_model=SamplingConfiguration,
    status_code=status.HTTP_201_CREATED,
)
async def reconfigure_sampling_endpoint(
    control_id: str,
    payload: ConfigureRequest,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Replace the active configuration with a new draft.

    Raises:
        409 if evidence was already requested for the active configuration.
    """
    try:
        return await sampling_service.reconfigure_control(
            repo,
            control_id,
            payload.audit_start,
            payload.audit_end,
            created_by=payload.created_by,
            period_type=payload.period_type,
            fiscal_year_start_month=payload.fiscal_year_start_month,
            seed=payload.seed,
            minimum_interval_days=payload.minimum_interval_days,
        )
    except SamplingError as e:
        raise to_http_exception(e)


@router.post("/controls/{control_id}/sampling/generate", response_model=GenerateResponse)
async def generate_samples_endpoint(
    control_id: str,
    payload: GenerateRequest | None = None,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Generate (or regenerate) sample dates for the active configuration.

    Shortfalls are reported as warnings, not errors.
    """
    payload = payload or GenerateRequest()
    try:
        result = await sampling_service.generate_control_samples(
            repo,
            control_id,
            performed_by=payload.performed_by,
            config_id=payload.config_id,
        )
    except SamplingError as e:
        raise to_http_exception(e)
    return GenerateResponse(samples=result.samples, warnings=result.warnings)


@router.post("/controls/{control_id}/sampling/approve", response_model=SamplingConfiguration)
async def approve_samples_endpoint(
    control_id: str,
    payload: ApproveRequest | None = None,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Approve the generated sample selection.

    Raises:
        409 if samples have not been generated.
    """
    payload = payload or ApproveRequest()
    try:
        return await sampling_service.approve_control_samples(
            repo,
            control_id,
            approved_by=payload.approved_by,
            config_id=payload.config_id,
        )
    except SamplingError as e:
        raise to_http_exception(e)


@router.post(
    "/controls/{control_id}/evidence-requests",
    response_model=EvidenceRequest,
    status_code=status.HTTP_201_CREATED,
)
async def create_evidence_request_endpoint(
    control_id: str,
    payload: EvidenceRequestCreate | None = None,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Send an evidence request covering the approved sample dates.

    Raises:
        400 if no samples are approved.
        409 if evidence was already requested.
    """
    payload = payload or EvidenceRequestCreate()
    try:
        return await sampling_service.send_evidence_request(
            repo,
            control_id,
            created_by=payload.created_by,
            config_id=payload.config_id,
            due_in_days=payload.due_in_days,
            title=payload.title,
            instructions=payload.instructions,
        )
    except SamplingError as e:
        raise to_http_exception(e)


@router.post(
    "/controls/{control_id}/evidence-requests/{request_id}/submissions",
    response_model=EvidenceSubmission,
    status_code=status.HTTP_201_CREATED,
)
async def submit_evidence_endpoint(
    control_id: str,
    request_id: UUID,
    payload: EvidenceSubmissionCreate,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Record evidence delivered against an evidence request.
    """
    try:
        return await sampling_service.submit_evidence(repo, control_id, request_id, payload)
    except SamplingError as e:
        raise to_http_exception(e)


@router.post(
    "/controls/{control_id}/submissions/{submission_id}/review",
    response_model=EvidenceSubmission,
)
async def review_submission_endpoint(
    control_id: str,
    submission_id: UUID,
    payload: ReviewRequest,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Record the auditor's review of a submission.

    Approving the last outstanding submission completes the workflow.
    """
    try:
        return await sampling_service.review_submission(
            repo,
            control_id,
            submission_id,
            status=payload.status,
            reviewed_by=payload.reviewed_by,
            notes=payload.notes,
        )
    except SamplingError as e:
        raise to_http_exception(e)


@router.get("/controls/{control_id}/sampling/export")
async def export_samples_endpoint(
    control_id: str,
    config_id: UUID | None = None,
    repo: SamplingRepository = Depends(get_repository),
):
    """
    Download a configuration's samples as CSV (default: the active configuration).
    """
    try:
        content = await sampling_service.export_control_samples(
            repo, control_id, config_id=config_id
        )
    except SamplingError as e:
        raise to_http_exception(e)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{control_id}_samples.csv"'},
    )
