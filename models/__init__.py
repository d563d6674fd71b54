"""Database models."""

from db import Base

# Import all models so Alembic can detect them
from models.control import ControlRow, ControlDescriptor
from models.sampling_classification import SamplingClassificationRow, SamplingClassification
from models.sampling_configuration import SamplingConfigurationRow, SamplingConfiguration, Period
from models.generated_sample import GeneratedSampleRow, GeneratedSample
from models.evidence_request import EvidenceRequestRow, EvidenceRequest
from models.evidence_submission import EvidenceSubmissionRow, EvidenceSubmission, EvidenceSubmissionCreate
from models.sampling_audit_log import SamplingAuditLogRow, SamplingAuditLogEntry
from models.control_records import ControlRecords

__all__ = [
    "Base",
    "ControlRow",
    "ControlDescriptor",
    "SamplingClassificationRow",
    "SamplingClassification",
    "SamplingConfigurationRow",
    "SamplingConfiguration",
    "Period",
    "GeneratedSampleRow",
    "GeneratedSample",
    "EvidenceRequestRow",
    "EvidenceRequest",
    "EvidenceSubmissionRow",
    "EvidenceSubmission",
    "EvidenceSubmissionCreate",
    "SamplingAuditLogRow",
    "SamplingAuditLogEntry",
    "ControlRecords",
]
