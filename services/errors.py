"""Errors and warnings raised by the sampling engine."""

from pydantic import BaseModel

from models.enums import WarningCode


class SamplingError(Exception):
    """Base class for sampling engine errors."""


class InvalidTransition(SamplingError):
    """A workflow action was attempted from the wrong source status."""


class NoSamplesAvailable(SamplingError):
    """An evidence request was attempted without any approved samples."""


class ConfigurationNotFound(SamplingError):
    pass


class EvidenceRequestNotFound(SamplingError):
    pass


class SubmissionNotFound(SamplingError):
    pass


class ControlNotFound(SamplingError):
    pass


class InvalidSamplingInput(SamplingError, ValueError):
    """Precondition failure: bad date range, negative count, malformed periods."""


class EngineWarning(BaseModel):
    """Non-fatal condition reported alongside a result.

    Callers decide whether to act on it (e.g. retry generation with a
    smaller minimum interval).
    """

    code: WarningCode
    message: str
    period_id: str | None = None
    requested: int | None = None
    generated: int | None = None
