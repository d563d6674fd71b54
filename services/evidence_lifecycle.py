"""Evidence lifecycle state machine.

Status is derived from explicit inputs only. Transitions mutate a control's
``ControlRecords`` bundle in place and append an audit trail entry; callers
persist the bundle through the repository afterwards.
"""

import logging
import secrets
from datetime import date, datetime, timedelta
from uuid import UUID

from models.control import ControlDescriptor
from models.control_records import ControlRecords
from models.enums import (
    AuditAction,
    ConfigurationStatus,
    ControlSamplingStatus,
    EvidenceProgress,
    EvidenceRequestStatus,
    Methodology,
    PeriodType,
    SampleStatus,
    SubmissionStatus,
)
from models.evidence_request import EvidenceRequest
from models.evidence_submission import EvidenceSubmission, EvidenceSubmissionCreate
from models.generated_sample import GeneratedSample
from models.sampling_audit_log import SamplingAuditLogEntry
from models.sampling_classification import SamplingClassification
from models.sampling_configuration import SamplingConfiguration
from services.errors import (
    ConfigurationNotFound,
    EvidenceRequestNotFound,
    InvalidTransition,
    NoSamplesAvailable,
    SubmissionNotFound,
)
from services.frequency_classifier import audit_months_between, classify
from services.holidays import HolidayCalendar
from services.period_partitioner import partition
from services.sample_generator import GenerationResult, run_generation

logger = logging.getLogger(__name__)

DEFAULT_EVIDENCE_DUE_DAYS = 14
SEED_RANGE = 10_000

DEFAULT_INSTRUCTIONS = (
    "For each sample date, please provide:\n"
    "1. Supporting documentation showing the control was performed\n"
    "2. Evidence of proper authorization/approval where applicable\n"
    "3. System-generated reports or logs as available\n"
    "4. Any additional documentation demonstrating control effectiveness"
)

_REGENERATABLE = {
    ConfigurationStatus.DRAFT,
    ConfigurationStatus.GENERATED,
    ConfigurationStatus.APPROVED,
}
_REQUESTED = {ConfigurationStatus.SENT, ConfigurationStatus.COMPLETED}


# ============================================================
# Status derivation
# ============================================================


def derive_status(
    control_id: str,
    classification: SamplingClassification | None,
    config: SamplingConfiguration | None,
    samples: list[GeneratedSample],
    requests: list[EvidenceRequest],
) -> ControlSamplingStatus:
    """
    Derive a control's displayed workflow status. First matching rule wins.

    1. Any evidence request for the control -> EVIDENCE_REQUEST_SENT
    2. Classification says sampling is not required -> NO_SAMPLING_REQUIRED
    3. No configuration -> NEEDS_SAMPLING
    4. No approved sample in the configuration -> SAMPLING_CONFIGURED
    5. Otherwise -> READY_FOR_EVIDENCE_REQUEST
    """
    if any(r.control_id == control_id for r in requests):
        return ControlSamplingStatus.EVIDENCE_REQUEST_SENT
    if classification is not None and not classification.requires_sampling:
        return ControlSamplingStatus.NO_SAMPLING_REQUIRED
    if config is None:
        return ControlSamplingStatus.NEEDS_SAMPLING
    has_approved = any(
        s.sampling_config_id == config.id and s.status == SampleStatus.APPROVED
        for s in samples
    )
    if not has_approved:
        return ControlSamplingStatus.SAMPLING_CONFIGURED
    return ControlSamplingStatus.READY_FOR_EVIDENCE_REQUEST


def derive_control_status(records: ControlRecords) -> ControlSamplingStatus:
    config = records.active_configuration
    return derive_status(
        records.control_id,
        records.classification,
        config,
        records.samples_for(config.id) if config else [],
        records.requests,
    )


def _count_submitted(submissions: list[EvidenceSubmission]) -> int:
    return sum(1 for s in submissions if s.status != SubmissionStatus.REJECTED)


def evidence_progress(
    request: EvidenceRequest,
    submissions: list[EvidenceSubmission],
) -> EvidenceProgress:
    """Aggregate non-rejected submissions against the request's sample dates."""
    submitted = _count_submitted(
        [s for s in submissions if s.evidence_request_id == request.id]
    )
    if submitted == 0:
        return EvidenceProgress.PENDING
    if submitted < request.expected_evidence_count:
        return EvidenceProgress.PARTIAL
    return EvidenceProgress.COMPLETE


def control_evidence_progress(
    requests: list[EvidenceRequest],
    submissions: list[EvidenceSubmission],
) -> EvidenceProgress:
    """Same aggregation summed over every request of a control."""
    if not requests:
        return EvidenceProgress.NOT_REQUESTED
    request_ids = {r.id for r in requests}
    submitted = _count_submitted(
        [s for s in submissions if s.evidence_request_id in request_ids]
    )
    requested = sum(r.expected_evidence_count for r in requests)
    if submitted == 0:
        return EvidenceProgress.PENDING
    if submitted < requested:
        return EvidenceProgress.PARTIAL
    return EvidenceProgress.COMPLETE


# ============================================================
# Lookup helpers
# ============================================================


def get_configuration(records: ControlRecords, config_id: UUID) -> SamplingConfiguration:
    for config in records.configurations:
        if config.id == config_id:
            return config
    raise ConfigurationNotFound(
        f"Sampling configuration {config_id} not found for control {records.control_id}"
    )


def get_request(records: ControlRecords, request_id: UUID) -> EvidenceRequest:
    for request in records.requests:
        if request.id == request_id:
            return request
    raise EvidenceRequestNotFound(
        f"Evidence request {request_id} not found for control {records.control_id}"
    )


def get_submission(records: ControlRecords, submission_id: UUID) -> EvidenceSubmission:
    for submission in records.submissions:
        if submission.id == submission_id:
            return submission
    raise SubmissionNotFound(
        f"Evidence submission {submission_id} not found for control {records.control_id}"
    )


def _log(
    records: ControlRecords,
    action: AuditAction,
    *,
    performed_by: str,
    performed_at: datetime,
    details: str,
    config_id: UUID | None = None,
) -> None:
    records.audit_log.append(
        SamplingAuditLogEntry(
            control_id=records.control_id,
            sampling_config_id=config_id,
            action=action,
            performed_by=performed_by,
            performed_at=performed_at,
            sequence=max((e.sequence for e in records.audit_log), default=0) + 1,
            details=details,
        )
    )
    logger.info("Control %s: %s (%s)", records.control_id, action.value, details)


# ============================================================
# Transitions
# ============================================================


def _new_configuration(
    records: ControlRecords,
    descriptor: ControlDescriptor,
    audit_start: date,
    audit_end: date,
    *,
    created_by: str,
    now: datetime,
    seed: int | None,
    period_type: PeriodType,
    fiscal_year_start_month: int,
    minimum_interval_days: int | None,
    max_sample_count: int | None,
) -> SamplingConfiguration:
    classify_kwargs = {}
    if max_sample_count is not None:
        classify_kwargs["max_sample_count"] = max_sample_count
    classification = classify(
        descriptor.frequency_label,
        descriptor.risk_rating,
        audit_months=audit_months_between(audit_start, audit_end),
        control_id=records.control_id,
        classified_at=now,
        **classify_kwargs,
    )
    records.classification = classification
    if not classification.requires_sampling:
        raise InvalidTransition(
            f"Control {records.control_id} does not require sampling "
            f"(frequency {descriptor.frequency_label!r})"
        )

    periods = partition(
        classification,
        audit_start,
        audit_end,
        period_type=period_type,
        fiscal_year_start_month=fiscal_year_start_month,
    )
    if minimum_interval_days is None:
        minimum_interval_days = 7 if classification.methodology == Methodology.JUDGMENTAL else 1

    return SamplingConfiguration(
        control_id=records.control_id,
        sample_count=classification.sample_count,
        methodology=classification.methodology,
        period_type=period_type,
        audit_start=audit_start,
        audit_end=audit_end,
        periods=periods,
        minimum_interval_days=minimum_interval_days,
        seed=seed if seed is not None else secrets.randbelow(SEED_RANGE),
        status=ConfigurationStatus.DRAFT,
        created_by=created_by,
        created_at=now,
        notes=(
            f"Auto-generated for {descriptor.frequency_label or 'unspecified'} frequency, "
            f"{descriptor.risk_rating or 'unspecified'} risk rating"
        ),
    )


def configure(
    records: ControlRecords,
    descriptor: ControlDescriptor,
    audit_start: date,
    audit_end: date,
    *,
    created_by: str,
    now: datetime,
    seed: int | None = None,
    period_type: PeriodType = PeriodType.CALENDAR_QUARTERS,
    fiscal_year_start_month: int = 1,
    minimum_interval_days: int | None = None,
    max_sample_count: int | None = None,
) -> SamplingConfiguration:
    """
    Create a draft sampling configuration for a control.

    Idempotent: an existing active configuration is returned unchanged.

    Raises:
        InvalidTransition: If the control does not require sampling
    """
    existing = records.active_configuration
    if existing is not None:
        return existing

    config = _new_configuration(
        records,
        descriptor,
        audit_start,
        audit_end,
        created_by=created_by,
        now=now,
        seed=seed,
        period_type=period_type,
        fiscal_year_start_month=fiscal_year_start_month,
        minimum_interval_days=minimum_interval_days,
        max_sample_count=max_sample_count,
    )
    records.configurations.append(config)
    _log(
        records,
        AuditAction.CREATED,
        performed_by=created_by,
        performed_at=now,
        config_id=config.id,
        details=(
            f"{config.methodology.value} sampling configured: {config.sample_count} samples "
            f"over {len(config.periods)} periods"
        ),
    )
    return config


def reconfigure(
    records: ControlRecords,
    descriptor: ControlDescriptor,
    audit_start: date,
    audit_end: date,
    *,
    created_by: str,
    now: datetime,
    seed: int | None = None,
    period_type: PeriodType = PeriodType.CALENDAR_QUARTERS,
    fiscal_year_start_month: int = 1,
    minimum_interval_days: int | None = None,
    max_sample_count: int | None = None,
) -> SamplingConfiguration:
    """
    Supersede the active configuration with a fresh draft.

    The previous configuration and its samples are kept for the audit trail.

    Raises:
        InvalidTransition: If evidence was already requested for the active
            configuration, or the control no longer requires sampling
    """
    previous = records.active_configuration
    if previous is not None and previous.status in _REQUESTED:
        raise InvalidTransition(
            f"Configuration {previous.id} is {previous.status.value}; evidence already requested"
        )

    config = _new_configuration(
        records,
        descriptor,
        audit_start,
        audit_end,
        created_by=created_by,
        now=now,
        seed=seed,
        period_type=period_type,
        fiscal_year_start_month=fiscal_year_start_month,
        minimum_interval_days=minimum_interval_days,
        max_sample_count=max_sample_count,
    )
    if previous is not None:
        previous.is_active = False
    records.configurations.append(config)
    _log(
        records,
        AuditAction.RECONFIGURED if previous is not None else AuditAction.CREATED,
        performed_by=created_by,
        performed_at=now,
        config_id=config.id,
        details=(
            f"Replaced configuration {previous.id}" if previous is not None
            else "Sampling configured"
        ),
    )
    return config


def generate_samples(
    records: ControlRecords,
    config_id: UUID,
    *,
    performed_by: str,
    now: datetime,
    holidays: HolidayCalendar | None = None,
) -> GenerationResult:
    """
    Generate (or regenerate) samples for a configuration.

    Previous samples of the configuration are discarded, the new set is
    stored and the configuration moves to ``generated``.

    Raises:
        ConfigurationNotFound: If the configuration does not belong to the control
        InvalidTransition: If evidence was already requested
    """
    config = get_configuration(records, config_id)
    if config.status not in _REGENERATABLE:
        raise InvalidTransition(
            f"Cannot generate samples for configuration in status {config.status.value}"
        )

    result = run_generation(config, holidays=holidays)
    regenerated = any(s.sampling_config_id == config.id for s in records.samples)
    records.samples = [s for s in records.samples if s.sampling_config_id != config.id]
    records.samples.extend(result.samples)

    config.status = ConfigurationStatus.GENERATED
    config.approved_by = None
    config.approved_at = None

    _log(
        records,
        AuditAction.REGENERATED if regenerated else AuditAction.GENERATED,
        performed_by=performed_by,
        performed_at=now,
        config_id=config.id,
        details=(
            f"Generated {len(result.samples)} samples using {config.methodology.value} methodology"
        ),
    )
    return result


def approve_samples(
    records: ControlRecords,
    config_id: UUID,
    *,
    approved_by: str,
    now: datetime,
) -> SamplingConfiguration:
    """
    Approve the generated sample selection.

    Raises:
        ConfigurationNotFound: If the configuration does not belong to the control
        InvalidTransition: If the configuration is not in ``generated`` status
    """
    config = get_configuration(records, config_id)
    if config.status != ConfigurationStatus.GENERATED:
        raise InvalidTransition(
            f"Cannot approve samples for configuration in status {config.status.value}; "
            "samples must be generated first"
        )

    config.status = ConfigurationStatus.APPROVED
    config.approved_by = approved_by
    config.approved_at = now
    for sample in records.samples_for(config.id):
        sample.status = SampleStatus.APPROVED

    _log(
        records,
        AuditAction.APPROVED,
        performed_by=approved_by,
        performed_at=now,
        config_id=config.id,
        details="Sample selection approved by auditor",
    )
    return config


def create_evidence_request(
    records: ControlRecords,
    config_id: UUID,
    *,
    created_by: str,
    now: datetime,
    due_in_days: int = DEFAULT_EVIDENCE_DUE_DAYS,
    title: str | None = None,
    instructions: str | None = None,
) -> EvidenceRequest:
    """
    Send an evidence request covering the approved sample dates.

    Raises:
        ConfigurationNotFound: If the configuration does not belong to the control
        NoSamplesAvailable: If the configuration has no approved samples
        InvalidTransition: If evidence was already requested for the configuration
    """
    config = get_configuration(records, config_id)
    approved = [
        s for s in records.samples_for(config.id) if s.status == SampleStatus.APPROVED
    ]
    if not approved:
        raise NoSamplesAvailable(
            f"Configuration {config.id} has no approved samples to request evidence for"
        )
    if config.status in _REQUESTED:
        raise InvalidTransition(
            f"Evidence already requested for configuration {config.id}"
        )

    name = records.descriptor.name if records.descriptor and records.descriptor.name else records.control_id
    request = EvidenceRequest(
        control_id=records.control_id,
        sampling_config_id=config.id,
        status=EvidenceRequestStatus.SENT,
        sample_dates=sorted(s.sample_date for s in approved),
        title=title or f"Evidence Request - {name}",
        instructions=instructions or DEFAULT_INSTRUCTIONS,
        priority="high" if config.methodology == Methodology.JUDGMENTAL else "medium",
        created_by=created_by,
        created_at=now,
        due_date=now.date() + timedelta(days=due_in_days),
    )
    records.requests.append(request)
    config.status = ConfigurationStatus.SENT

    _log(
        records,
        AuditAction.SENT,
        performed_by=created_by,
        performed_at=now,
        config_id=config.id,
        details=f"Evidence request sent to client with {len(request.sample_dates)} sample dates",
    )
    return request


def receive_evidence(
    records: ControlRecords,
    request_id: UUID,
    submission: EvidenceSubmissionCreate,
    *,
    now: datetime,
) -> EvidenceSubmission:
    """
    Record evidence delivered against a request.

    The request status is left alone; progress is an aggregate computed by
    ``evidence_progress``.

    Raises:
        EvidenceRequestNotFound: If the request does not belong to the control
    """
    request = get_request(records, request_id)
    if submission.sample_date is not None and submission.sample_date not in request.sample_dates:
        logger.warning(
            "Evidence for %s does not match a requested sample date of request %s",
            submission.sample_date,
            request.id,
        )

    stored = EvidenceSubmission(
        **submission.model_dump(),
        evidence_request_id=request.id,
        status=SubmissionStatus.UPLOADED,
        uploaded_at=now,
    )
    records.submissions.append(stored)

    submitted = _count_submitted(records.submissions_for(request.id))
    _log(
        records,
        AuditAction.EVIDENCE_RECEIVED,
        performed_by=submission.uploaded_by,
        performed_at=now,
        config_id=request.sampling_config_id,
        details=(
            f"Evidence submitted: {submission.file_name or 'unnamed file'} for "
            f"{submission.sample_date or 'general evidence'}. "
            f"{submitted}/{request.expected_evidence_count} received"
        ),
    )
    return stored


def review_evidence(
    records: ControlRecords,
    submission_id: UUID,
    *,
    status: SubmissionStatus,
    reviewed_by: str,
    now: datetime,
    notes: str | None = None,
) -> EvidenceSubmission:
    """
    Record the auditor's review of a submission.

    When every non-rejected submission of the request is approved and the
    expected count is met, the request is approved and the configuration
    completed.

    Raises:
        SubmissionNotFound: If the submission does not belong to the control
        InvalidTransition: If status is ``uploaded`` (not a review outcome)
    """
    if status == SubmissionStatus.UPLOADED:
        raise InvalidTransition("A review must move a submission out of 'uploaded'")

    submission = get_submission(records, submission_id)
    request = get_request(records, submission.evidence_request_id)

    submission.status = status
    submission.reviewed_by = reviewed_by
    submission.reviewed_at = now
    submission.review_notes = notes

    _log(
        records,
        AuditAction.EVIDENCE_REVIEWED,
        performed_by=reviewed_by,
        performed_at=now,
        config_id=request.sampling_config_id,
        details=f"Submission {submission.id} marked {status.value}",
    )

    live = [
        s for s in records.submissions_for(request.id)
        if s.status != SubmissionStatus.REJECTED
    ]
    all_approved = bool(live) and all(s.status == SubmissionStatus.APPROVED for s in live)
    if all_approved and len(live) >= request.expected_evidence_count:
        request.status = EvidenceRequestStatus.APPROVED
        request.reviewed_at = now
        config = get_configuration(records, request.sampling_config_id)
        config.status = ConfigurationStatus.COMPLETED
        _log(
            records,
            AuditAction.COMPLETED,
            performed_by=reviewed_by,
            performed_at=now,
            config_id=config.id,
            details="All evidence approved for control. Workflow complete.",
        )
    return submission
