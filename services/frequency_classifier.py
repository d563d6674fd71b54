"""Frequency classifier: decides whether a control needs sampling and how much."""

import logging
import math
from datetime import date, datetime

from models.enums import Methodology, RiskLevel, WarningCode
from models.sampling_classification import SamplingClassification
from services.errors import EngineWarning, InvalidSamplingInput

logger = logging.getLogger(__name__)

# Annualized sample counts per normalized frequency label
FREQUENCY_SAMPLE_COUNTS: dict[str, int] = {
    "annually": 1,
    "annual": 1,
    "yearly": 1,
    "semi-annually": 2,
    "semi-annual": 2,
    "quarterly": 4,
    "monthly": 6,
    "bi-weekly": 6,
    "biweekly": 6,
    "weekly": 8,
    "daily": 12,
    "continuous": 0,
    "ongoing": 0,
    "real-time": 0,
    "as needed": 0,
    "as-needed": 0,
    "ad hoc": 0,
    "ad-hoc": 0,
    "event-driven": 0,
    "one-time": 0,
    "single event": 0,
}

UNKNOWN_FREQUENCY_COUNT = 2
MAX_SAMPLE_COUNT = 15

_RISK_ALIASES: dict[str, RiskLevel] = {
    "h": RiskLevel.HIGH,
    "high": RiskLevel.HIGH,
    "m": RiskLevel.MEDIUM,
    "medium": RiskLevel.MEDIUM,
    "moderate": RiskLevel.MEDIUM,
    "l": RiskLevel.LOW,
    "low": RiskLevel.LOW,
}

_METHODOLOGY_BY_RISK: dict[RiskLevel, Methodology] = {
    RiskLevel.HIGH: Methodology.JUDGMENTAL,
    RiskLevel.MEDIUM: Methodology.SYSTEMATIC,
    RiskLevel.LOW: Methodology.RANDOM,
}


def normalize_frequency(label: str | None) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return " ".join((label or "").lower().split())


def normalize_risk(rating: str | None) -> RiskLevel | None:
    """Map 'H'/'high'/... to a RiskLevel; unrecognized text yields None."""
    return _RISK_ALIASES.get(normalize_frequency(rating))


def audit_months_between(start: date, end: date) -> int:
    """Number of calendar months touched by the window [start, end]."""
    if start > end:
        raise InvalidSamplingInput(f"audit start {start} is after audit end {end}")
    return (end.year - start.year) * 12 + end.month - start.month + 1


def risk_adjusted_count(count: int, risk: RiskLevel | None, *, cap: int = MAX_SAMPLE_COUNT) -> int:
    """Apply the +/-1 risk nudge to a frequency-derived count."""
    if risk is RiskLevel.HIGH:
        return count + 1 if count < cap else count
    if risk is RiskLevel.LOW:
        return max(count - 1, 1)
    return count


def classify(
    frequency_label: str | None,
    risk_rating: str | None,
    *,
    audit_months: int = 12,
    control_id: str | None = None,
    classified_at: datetime | None = None,
    max_sample_count: int = MAX_SAMPLE_COUNT,
) -> SamplingClassification:
    """
    Classify a control's sampling requirement.

    Frequency sets the base count; risk only nudges it by one sample and
    picks the methodology.

    Args:
        frequency_label: Free-text frequency, e.g. "Quarterly"
        risk_rating: 'H', 'M', 'L' (or free text)
        audit_months: Length of the audit window in months
        control_id: Optional control the classification is cached for
        classified_at: Optional timestamp stamped on the result
        max_sample_count: Cap applied by the high-risk adjustment

    Returns:
        SamplingClassification
    """
    if audit_months < 1:
        raise InvalidSamplingInput(f"audit_months must be at least 1, got {audit_months}")

    key = normalize_frequency(frequency_label)
    recognized = key in FREQUENCY_SAMPLE_COUNTS
    if recognized:
        annualized = FREQUENCY_SAMPLE_COUNTS[key]
    else:
        annualized = UNKNOWN_FREQUENCY_COUNT
        logger.warning(
            "Unknown frequency %r for control %s; defaulting to %d samples per year",
            frequency_label,
            control_id or "<unregistered>",
            UNKNOWN_FREQUENCY_COUNT,
        )

    risk = normalize_risk(risk_rating)
    methodology = _METHODOLOGY_BY_RISK.get(risk, Methodology.RANDOM)

    requires_sampling = annualized > 0
    sample_count = 0
    if requires_sampling:
        sample_count = max(math.ceil(annualized * audit_months / 12), 1)
        sample_count = risk_adjusted_count(sample_count, risk, cap=max_sample_count)

    return SamplingClassification(
        control_id=control_id,
        requires_sampling=requires_sampling,
        sample_count=sample_count,
        methodology=methodology,
        frequency_key=key if recognized else None,
        annualized_count=annualized,
        audit_months=audit_months,
        risk_level=risk,
        recognized_frequency=recognized,
        classified_at=classified_at,
    )


def classification_warnings(classification: SamplingClassification) -> list[EngineWarning]:
    """Warnings to surface alongside a classification."""
    if classification.recognized_frequency:
        return []
    return [
        EngineWarning(
            code=WarningCode.UNKNOWN_FREQUENCY,
            message=(
                f"Frequency not recognized; assumed {UNKNOWN_FREQUENCY_COUNT} samples per year"
            ),
        )
    ]
