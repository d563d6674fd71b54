"""Repository for sampling records (DB-only layer).

A repository loads and saves the complete ``ControlRecords`` bundle of one
control. Writes for the same control must be serialized by the caller.
"""

from abc import ABC, abstractmethod
from datetime import datetime, UTC
from enum import Enum

from pydantic import BaseModel
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.control import ControlDescriptor, ControlRow
from models.control_records import ControlRecords
from models.evidence_request import EvidenceRequest, EvidenceRequestRow
from models.evidence_submission import EvidenceSubmission, EvidenceSubmissionRow
from models.generated_sample import GeneratedSample, GeneratedSampleRow
from models.sampling_audit_log import SamplingAuditLogEntry, SamplingAuditLogRow
from models.sampling_classification import SamplingClassification, SamplingClassificationRow
from models.sampling_configuration import SamplingConfiguration, SamplingConfigurationRow


class SamplingRepository(ABC):
    """Key-value store of ControlRecords keyed by control id."""

    @abstractmethod
    async def load(self, control_id: str) -> ControlRecords:
        """
        Load every record of a control.

        Args:
            control_id: Control to load

        Returns:
            ControlRecords (empty bundle when the control is unknown)
        """

    @abstractmethod
    async def save(self, records: ControlRecords) -> None:
        """
        Persist a bundle, replacing what is stored for its control.

        Args:
            records: Bundle to persist
        """


class InMemorySamplingRepository(SamplingRepository):
    """Dict-backed repository; bundles are deep-copied in and out."""

    def __init__(self):
        self._store: dict[str, ControlRecords] = {}

    async def load(self, control_id: str) -> ControlRecords:
        stored = self._store.get(control_id)
        if stored is None:
            return ControlRecords(control_id=control_id)
        return stored.model_copy(deep=True)

    async def save(self, records: ControlRecords) -> None:
        self._store[records.control_id] = records.model_copy(deep=True)


def _columns(model: BaseModel, **overrides) -> dict:
    """Column values for an ORM row; enums are stored by value."""
    data = model.model_dump()
    data.update(overrides)
    return {key: value.value if isinstance(value, Enum) else value for key, value in data.items()}


def _config_row(config: SamplingConfiguration) -> SamplingConfigurationRow:
    return SamplingConfigurationRow(
        **_columns(config, periods=[p.model_dump(mode="json") for p in config.periods])
    )


def _request_row(request: EvidenceRequest) -> EvidenceRequestRow:
    return EvidenceRequestRow(
        **_columns(request, sample_dates=[d.isoformat() for d in request.sample_dates])
    )


class SqlSamplingRepository(SamplingRepository):
    """SQLAlchemy async repository over the sampling tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self, control_id: str) -> ControlRecords:
        session = self.session

        control = await session.get(ControlRow, control_id)
        classification = await session.get(SamplingClassificationRow, control_id)

        result = await session.execute(
            select(SamplingConfigurationRow)
            .where(SamplingConfigurationRow.control_id == control_id)
            .order_by(SamplingConfigurationRow.created_at)
        )
        configurations = [SamplingConfiguration.model_validate(row) for row in result.scalars().all()]
        config_ids = [c.id for c in configurations]

        samples: list[GeneratedSample] = []
        if config_ids:
            result = await session.execute(
                select(GeneratedSampleRow)
                .where(GeneratedSampleRow.sampling_config_id.in_(config_ids))
                .order_by(GeneratedSampleRow.sample_index)
            )
            samples = [GeneratedSample.model_validate(row) for row in result.scalars().all()]

        result = await session.execute(
            select(EvidenceRequestRow)
            .where(EvidenceRequestRow.control_id == control_id)
            .order_by(EvidenceRequestRow.created_at)
        )
        requests = [EvidenceRequest.model_validate(row) for row in result.scalars().all()]
        request_ids = [r.id for r in requests]

        submissions: list[EvidenceSubmission] = []
        if request_ids:
            result = await session.execute(
                select(EvidenceSubmissionRow)
                .where(EvidenceSubmissionRow.evidence_request_id.in_(request_ids))
                .order_by(EvidenceSubmissionRow.uploaded_at)
            )
            submissions = [EvidenceSubmission.model_validate(row) for row in result.scalars().all()]

        result = await session.execute(
            select(SamplingAuditLogRow)
            .where(SamplingAuditLogRow.control_id == control_id)
            .order_by(SamplingAuditLogRow.performed_at, SamplingAuditLogRow.sequence)
        )
        audit_log = [SamplingAuditLogEntry.model_validate(row) for row in result.scalars().all()]

        return ControlRecords(
            control_id=control_id,
            descriptor=ControlDescriptor.model_validate(control) if control else None,
            classification=(
                SamplingClassification.model_validate(classification) if classification else None
            ),
            configurations=configurations,
            samples=samples,
            requests=requests,
            submissions=submissions,
            audit_log=audit_log,
        )

    async def save(self, records: ControlRecords) -> None:
        session = self.session

        if records.descriptor is not None:
            created_at = records.descriptor.created_at or datetime.now(UTC)
            await session.merge(
                ControlRow(**_columns(records.descriptor, created_at=created_at))
            )
        if records.classification is not None:
            await session.merge(
                SamplingClassificationRow(
                    **_columns(records.classification, control_id=records.control_id)
                )
            )
        await session.flush()

        # Deactivate superseded configurations before activating a new one
        for config in records.configurations:
            if not config.is_active:
                await session.merge(_config_row(config))
        await session.flush()
        for config in records.configurations:
            if config.is_active:
                await session.merge(_config_row(config))
        await session.flush()

        # Samples dropped by regeneration are deleted; no orphans remain
        config_ids = [c.id for c in records.configurations]
        if config_ids:
            await session.execute(
                delete(GeneratedSampleRow)
                .where(
                    GeneratedSampleRow.sampling_config_id.in_(config_ids),
                    GeneratedSampleRow.id.not_in([s.id for s in records.samples]),
                )
                .execution_options(synchronize_session="fetch")
            )
            await session.flush()
        for sample in records.samples:
            await session.merge(GeneratedSampleRow(**_columns(sample)))

        for request in records.requests:
            await session.merge(_request_row(request))
        for submission in records.submissions:
            await session.merge(EvidenceSubmissionRow(**_columns(submission)))
        for entry in records.audit_log:
            await session.merge(SamplingAuditLogRow(**_columns(entry)))

        await session.commit()
