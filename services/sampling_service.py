"""Service layer for sampling workflows.

Each operation loads a control's records, runs one engine step and saves the
records back through the repository.
"""

import logging
from datetime import date, datetime, UTC
from uuid import UUID

from pydantic import BaseModel

import config
from models.control import ControlDescriptor, ControlDescriptorBase
from models.control_records import ControlRecords
from models.enums import ControlSamplingStatus, EvidenceProgress, PeriodType, SubmissionStatus
from models.evidence_request import EvidenceRequest
from models.evidence_submission import EvidenceSubmission, EvidenceSubmissionCreate
from models.generated_sample import GeneratedSample
from models.sampling_classification import SamplingClassification
from models.sampling_configuration import SamplingConfiguration
from repos.sampling_repo import SamplingRepository
from services import evidence_lifecycle
from services.errors import ConfigurationNotFound, ControlNotFound, EngineWarning
from services.export import samples_to_csv
from services.frequency_classifier import audit_months_between, classification_warnings, classify
from services.sample_generator import GenerationResult

logger = logging.getLogger(__name__)


class ControlSamplingSummary(BaseModel):
    """Snapshot of a control's sampling workflow."""

    control_id: str
    status: ControlSamplingStatus
    evidence_progress: EvidenceProgress
    classification: SamplingClassification | None = None
    configuration: SamplingConfiguration | None = None
    samples: list[GeneratedSample] = []
    requests: list[EvidenceRequest] = []
    submissions: list[EvidenceSubmission] = []
    warnings: list[EngineWarning] = []


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(UTC)


async def _load_registered(repo: SamplingRepository, control_id: str) -> ControlRecords:
    records = await repo.load(control_id)
    if records.descriptor is None:
        raise ControlNotFound(f"Control {control_id} is not registered")
    return records


def _target_config_id(records: ControlRecords, config_id: UUID | None) -> UUID:
    if config_id is not None:
        return config_id
    active = records.active_configuration
    if active is None:
        raise ConfigurationNotFound(
            f"Control {records.control_id} has no active sampling configuration"
        )
    return active.id


def _default_period_type(period_type: PeriodType | None) -> PeriodType:
    return period_type or PeriodType(config.settings.DEFAULT_PERIOD_TYPE)


async def register_control(
    repo: SamplingRepository,
    control_id: str,
    descriptor: ControlDescriptorBase,
    *,
    now: datetime | None = None,
) -> ControlRecords:
    """
    Register (or replace) a control descriptor and cache its classification.

    The classification is kept when the frequency label and risk rating are
    unchanged. Otherwise it is recomputed against the active configuration's
    audit window, or a 12-month window when the control is not configured yet.

    Args:
        repo: Sampling repository
        control_id: Control identifier
        descriptor: Name, frequency label and risk rating
        now: Timestamp override

    Returns:
        The stored ControlRecords
    """
    now = _now(now)
    records = await repo.load(control_id)
    previous = records.descriptor
    records.descriptor = ControlDescriptor(
        control_id=control_id,
        created_at=(previous.created_at if previous else None) or now,
        **descriptor.model_dump(include=set(ControlDescriptorBase.model_fields)),
    )
    unchanged = (
        previous is not None
        and records.classification is not None
        and previous.frequency_label == descriptor.frequency_label
        and previous.risk_rating == descriptor.risk_rating
    )
    if not unchanged:
        active = records.active_configuration
        records.classification = classify(
            descriptor.frequency_label,
            descriptor.risk_rating,
            audit_months=(
                audit_months_between(active.audit_start, active.audit_end) if active else 12
            ),
            control_id=control_id,
            classified_at=now,
            max_sample_count=config.settings.MAX_SAMPLE_COUNT,
        )
    await repo.save(records)
    logger.info(
        "Registered control %s (%s, %d samples)",
        control_id,
        records.classification.methodology.value,
        records.classification.sample_count,
    )
    return records


async def get_control_status(repo: SamplingRepository, control_id: str) -> ControlSamplingSummary:
    """
    Derive a control's status and evidence progress.

    Raises:
        ControlNotFound: If the control is not registered
    """
    records = await _load_registered(repo, control_id)
    active = records.active_configuration
    request_ids = {r.id for r in records.requests}
    return ControlSamplingSummary(
        control_id=control_id,
        status=evidence_lifecycle.derive_control_status(records),
        evidence_progress=evidence_lifecycle.control_evidence_progress(
            records.requests, records.submissions
        ),
        classification=records.classification,
        configuration=active,
        samples=records.samples_for(active.id) if active else [],
        requests=records.requests,
        submissions=[s for s in records.submissions if s.evidence_request_id in request_ids],
        warnings=(
            classification_warnings(records.classification) if records.classification else []
        ),
    )


async def configure_control(
    repo: SamplingRepository,
    control_id: str,
    audit_start: date,
    audit_end: date,
    *,
    created_by: str,
    period_type: PeriodType | None = None,
    fiscal_year_start_month: int | None = None,
    seed: int | None = None,
    minimum_interval_days: int | None = None,
    now: datetime | None = None,
) -> SamplingConfiguration:
    """
    Create the control's draft configuration; returns the active one if it exists.

    Raises:
        ControlNotFound: If the control is not registered
        InvalidTransition: If the control does not require sampling
        InvalidSamplingInput: If the audit window is invalid
    """
    records = await _load_registered(repo, control_id)
    result = evidence_lifecycle.configure(
        records,
        records.descriptor,
        audit_start,
        audit_end,
        created_by=created_by,
        now=_now(now),
        seed=seed,
        period_type=_default_period_type(period_type),
        fiscal_year_start_month=fiscal_year_start_month or config.settings.FISCAL_YEAR_START_MONTH,
        minimum_interval_days=minimum_interval_days,
        max_sample_count=config.settings.MAX_SAMPLE_COUNT,
    )
    await repo.save(records)
    return result


async def reconfigure_control(
    repo: SamplingRepository,
    control_id: str,
    audit_start: date,
    audit_end: date,
    *,
    created_by: str,
    period_type: PeriodType | None = None,
    fiscal_year_start_month: int | None = None,
    seed: int | None = None,
    minimum_interval_days: int | None = None,
    now: datetime | None = None,
) -> SamplingConfiguration:
    """
    Replace the active configuration with a new draft.

    Raises:
        ControlNotFound: If the control is not registered
        InvalidTransition: If evidence was already requested or sampling is not required
    """
    records = await _load_registered(repo, control_id)
    result = evidence_lifecycle.reconfigure(
        records,
        records.descriptor,
        audit_start,
        audit_end,
        created_by=created_by,
        now=_now(now),
        seed=seed,
        period_type=_default_period_type(period_type),
        fiscal_year_start_month=fiscal_year_start_month or config.settings.FISCAL_YEAR_START_MONTH,
        minimum_interval_days=minimum_interval_days,
        max_sample_count=config.settings.MAX_SAMPLE_COUNT,
    )
    await repo.save(records)
    return result


async def generate_control_samples(
    repo: SamplingRepository,
    control_id: str,
    *,
    performed_by: str,
    config_id: UUID | None = None,
    now: datetime | None = None,
) -> GenerationResult:
    """Generate samples for a configuration (default: the active one)."""
    records = await _load_registered(repo, control_id)
    result = evidence_lifecycle.generate_samples(
        records,
        _target_config_id(records, config_id),
        performed_by=performed_by,
        now=_now(now),
    )
    await repo.save(records)
    return result


async def approve_control_samples(
    repo: SamplingRepository,
    control_id: str,
    *,
    approved_by: str,
    config_id: UUID | None = None,
    now: datetime | None = None,
) -> SamplingConfiguration:
    records = await _load_registered(repo, control_id)
    result = evidence_lifecycle.approve_samples(
        records,
        _target_config_id(records, config_id),
        approved_by=approved_by,
        now=_now(now),
    )
    await repo.save(records)
    return result


async def send_evidence_request(
    repo: SamplingRepository,
    control_id: str,
    *,
    created_by: str,
    config_id: UUID | None = None,
    due_in_days: int | None = None,
    title: str | None = None,
    instructions: str | None = None,
    now: datetime | None = None,
) -> EvidenceRequest:
    """
    Send an evidence request for the approved samples.

    Raises:
        ControlNotFound: If the control is not registered
        ConfigurationNotFound: If there is no configuration to request from
        NoSamplesAvailable: If no sample is approved
        InvalidTransition: If evidence was already requested
    """
    records = await _load_registered(repo, control_id)
    result = evidence_lifecycle.create_evidence_request(
        records,
        _target_config_id(records, config_id),
        created_by=created_by,
        now=_now(now),
        due_in_days=due_in_days if due_in_days is not None else config.settings.EVIDENCE_DUE_DAYS,
        title=title,
        instructions=instructions,
    )
    await repo.save(records)
    return result


async def submit_evidence(
    repo: SamplingRepository,
    control_id: str,
    request_id: UUID,
    submission: EvidenceSubmissionCreate,
    *,
    now: datetime | None = None,
) -> EvidenceSubmission:
    records = await _load_registered(repo, control_id)
    result = evidence_lifecycle.receive_evidence(records, request_id, submission, now=_now(now))
    await repo.save(records)
    return result


async def review_submission(
    repo: SamplingRepository,
    control_id: str,
    submission_id: UUID,
    *,
    status: SubmissionStatus,
    reviewed_by: str,
    notes: str | None = None,
    now: datetime | None = None,
) -> EvidenceSubmission:
    records = await _load_registered(repo, control_id)
    result = evidence_lifecycle.review_evidence(
        records,
        submission_id,
        status=status,
        reviewed_by=reviewed_by,
        now=_now(now),
        notes=notes,
    )
    await repo.save(records)
    return result


async def export_control_samples(
    repo: SamplingRepository,
    control_id: str,
    *,
    config_id: UUID | None = None,
) -> str:
    """Render a configuration's samples (default: the active one) as CSV."""
    records = await _load_registered(repo, control_id)
    target = evidence_lifecycle.get_configuration(records, _target_config_id(records, config_id))
    return samples_to_csv(target, records.samples)
