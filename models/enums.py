"""Closed enumerations for sampling and evidence workflow states."""

from enum import Enum


class Methodology(str, Enum):
    """Sample selection strategy."""

    RANDOM = "random"
    SYSTEMATIC = "systematic"
    JUDGMENTAL = "judgmental"


class RiskLevel(str, Enum):
    HIGH = "H"
    MEDIUM = "M"
    LOW = "L"


class PeriodType(str, Enum):
    CALENDAR_QUARTERS = "calendar_quarters"
    FISCAL_QUARTERS = "fiscal_quarters"
    ROLLING_MONTHS = "rolling_months"


class ConfigurationStatus(str, Enum):
    DRAFT = "draft"
    GENERATED = "generated"
    APPROVED = "approved"
    SENT = "sent"
    COMPLETED = "completed"


class SampleStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


class EvidenceRequestStatus(str, Enum):
    SENT = "sent"
    APPROVED = "approved"


class SubmissionStatus(str, Enum):
    UPLOADED = "uploaded"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class EvidenceProgress(str, Enum):
    """Aggregate of submitted vs. requested sample dates."""

    NOT_REQUESTED = "not_requested"
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETE = "complete"


class ControlSamplingStatus(str, Enum):
    """Displayed workflow status of a control, in precedence order."""

    EVIDENCE_REQUEST_SENT = "Evidence Request Sent"
    NO_SAMPLING_REQUIRED = "No Sampling Required"
    NEEDS_SAMPLING = "Needs Sampling"
    SAMPLING_CONFIGURED = "Sampling Configured"
    READY_FOR_EVIDENCE_REQUEST = "Ready for Evidence Request"


class AuditAction(str, Enum):
    CREATED = "created"
    RECONFIGURED = "reconfigured"
    GENERATED = "generated"
    REGENERATED = "regenerated"
    APPROVED = "approved"
    SENT = "sent"
    EVIDENCE_RECEIVED = "evidence_received"
    EVIDENCE_REVIEWED = "evidence_reviewed"
    COMPLETED = "completed"


class WarningCode(str, Enum):
    UNKNOWN_FREQUENCY = "unknown_frequency"
    INSUFFICIENT_SAMPLES_GENERATED = "insufficient_samples_generated"
