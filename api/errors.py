"""Mapping of sampling engine errors to HTTP errors."""

from fastapi import HTTPException, status

from services.errors import (
    ConfigurationNotFound,
    ControlNotFound,
    EvidenceRequestNotFound,
    InvalidSamplingInput,
    InvalidTransition,
    NoSamplesAvailable,
    SamplingError,
    SubmissionNotFound,
)

_STATUS_CODES: list[tuple[type[SamplingError], int]] = [
    (ControlNotFound, status.HTTP_404_NOT_FOUND),
    (ConfigurationNotFound, status.HTTP_404_NOT_FOUND),
    (EvidenceRequestNotFound, status.HTTP_404_NOT_FOUND),
    (SubmissionNotFound, status.HTTP_404_NOT_FOUND),
    (InvalidTransition, status.HTTP_409_CONFLICT),
    (NoSamplesAvailable, status.HTTP_400_BAD_REQUEST),
    (InvalidSamplingInput, status.HTTP_400_BAD_REQUEST),
]


def to_http_exception(exc: SamplingError) -> HTTPException:
    """
    Translate an engine error into an HTTPException.

    Args:
        exc: Error raised by the engine or service layer

    Returns:
        HTTPException with the matching status code (400 for unmapped errors)
    """
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
