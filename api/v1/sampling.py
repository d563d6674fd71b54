"""
Sampling preview endpoints

Stateless classification and partitioning previews for a frequency and risk
rating, without registering a control.
"""

from datetime import date

from fastapi import APIRouter
from pydantic import BaseModel, Field

import config
from api.errors import to_http_exception
from models.enums import PeriodType
from models.sampling_classification import SamplingClassification
from models.sampling_configuration import Period
from services.errors import EngineWarning, SamplingError
from services.frequency_classifier import audit_months_between, classification_warnings, classify
from services.period_partitioner import partition

router = APIRouter()


class ClassifyRequest(BaseModel):
    frequency_label: str = ""
    risk_rating: str | None = None
    audit_start: date | None = None
    audit_end: date | None = None


class PartitionRequest(BaseModel):
    frequency_label: str = ""
    risk_rating: str | None = None
    audit_start: date
    audit_end: date
    period_type: PeriodType | None = None
    fiscal_year_start_month: int | None = Field(default=None, ge=1, le=12)


class PartitionResponse(BaseModel):
    classification: SamplingClassification
    periods: list[Period]
    warnings: list[EngineWarning] = []


def _audit_months(audit_start: date | None, audit_end: date | None) -> int:
    if audit_start is None or audit_end is None:
        return 12
    return audit_months_between(audit_start, audit_end)


@router.post("/sampling/classify", response_model=SamplingClassification)
async def classify_endpoint(payload: ClassifyRequest):
    """
    Preview the sampling decision for a frequency label and risk rating.

    The audit window defaults to 12 months when either bound is missing.
    """
    try:
        return classify(
            payload.frequency_label,
            payload.risk_rating,
            audit_months=_audit_months(payload.audit_start, payload.audit_end),
            max_sample_count=config.settings.MAX_SAMPLE_COUNT,
        )
    except SamplingError as e:
        raise to_http_exception(e)


@router.post("/sampling/partition", response_model=PartitionResponse)
async def partition_endpoint(payload: PartitionRequest):
    """
    Preview how the sample count spreads over the audit window's periods.
    """
    try:
        classification = classify(
            payload.frequency_label,
            payload.risk_rating,
            audit_months=audit_months_between(payload.audit_start, payload.audit_end),
            max_sample_count=config.settings.MAX_SAMPLE_COUNT,
        )
        periods = partition(
            classification,
            payload.audit_start,
            payload.audit_end,
            period_type=payload.period_type or PeriodType(config.settings.DEFAULT_PERIOD_TYPE),
            fiscal_year_start_month=(
                payload.fiscal_year_start_month or config.settings.FISCAL_YEAR_START_MONTH
            ),
        )
    except SamplingError as e:
        raise to_http_exception(e)
    return PartitionResponse(
        classification=classification,
        periods=periods,
        warnings=classification_warnings(classification),
    )
