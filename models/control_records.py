"""Bundle of every sampling record owned by one control."""

from uuid import UUID

from pydantic import BaseModel, Field

from models.control import ControlDescriptor
from models.evidence_request import EvidenceRequest
from models.evidence_submission import EvidenceSubmission
from models.generated_sample import GeneratedSample
from models.sampling_audit_log import SamplingAuditLogEntry
from models.sampling_classification import SamplingClassification
from models.sampling_configuration import SamplingConfiguration


class ControlRecords(BaseModel):
    """Unit of load/save for the sampling repository.

    The engine mutates a bundle in place; the repository persists it.
    """

    control_id: str
    descriptor: ControlDescriptor | None = None
    classification: SamplingClassification | None = None
    configurations: list[SamplingConfiguration] = Field(default_factory=list)
    samples: list[GeneratedSample] = Field(default_factory=list)
    requests: list[EvidenceRequest] = Field(default_factory=list)
    submissions: list[EvidenceSubmission] = Field(default_factory=list)
    audit_log: list[SamplingAuditLogEntry] = Field(default_factory=list)

    @property
    def active_configuration(self) -> SamplingConfiguration | None:
        for config in reversed(self.configurations):
            if config.is_active:
                return config
        return None

    def samples_for(self, config_id: UUID) -> list[GeneratedSample]:
        return [s for s in self.samples if s.sampling_config_id == config_id]

    def submissions_for(self, request_id: UUID) -> list[EvidenceSubmission]:
        return [s for s in self.submissions if s.evidence_request_id == request_id]
