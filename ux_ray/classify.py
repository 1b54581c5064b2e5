"""
Error Classification

Maps any failure raised while auditing a screenshot to one of a fixed set
of error kinds, each with an HTTP-style status and a fixed user-facing
message. The raw failure is logged for operators and never shown to users.

Failures the pipeline raises itself (AuditError subclasses) map by type.
Everything else is matched against the upstream decision table below,
first match wins, on the failure's message plus its status hint.
"""

import json
import logging
from typing import Optional, Union

from .errors import (
    BadInputError,
    EmptyResponseError,
    MissingCredentialsError,
    ParseError,
    PreprocessError,
    UpstreamError,
    UpstreamUnreachableError,
    ValidationError,
)
from .models import ClassifiedError, ErrorKind, Failure

logger = logging.getLogger(__name__)


MESSAGES = {
    ErrorKind.MISSING_CREDENTIALS: (
        "The vision API key is not configured. Please add it to your .env file."
    ),
    ErrorKind.BAD_INPUT: (
        "No usable image provided. Please upload a PNG, JPEG or WebP screenshot."
    ),
    ErrorKind.UPSTREAM_QUOTA: (
        "API quota exceeded. Please wait a moment and try again, or use a new API key."
    ),
    ErrorKind.UPSTREAM_UNREACHABLE: (
        "Cannot connect to the vision API. Please check your network/VPN connection."
    ),
    ErrorKind.UPSTREAM_AUTH: (
        "Invalid API key. Please check the API key in your .env file."
    ),
    ErrorKind.UPSTREAM_NOT_FOUND: (
        "Model not found. Try a different model, e.g. 'gemini-2.0-flash'."
    ),
    ErrorKind.RESPONSE_UNPARSEABLE: "Failed to parse AI response. Please try again.",
    ErrorKind.EMPTY_RESPONSE: "Empty response from AI. Please try again.",
    ErrorKind.UNKNOWN: "Analysis failed. Please try again.",
}

STATUS_CODES = {
    ErrorKind.MISSING_CREDENTIALS: 500,
    ErrorKind.BAD_INPUT: 400,
    ErrorKind.UPSTREAM_QUOTA: 429,
    ErrorKind.UPSTREAM_UNREACHABLE: 500,
    ErrorKind.UPSTREAM_AUTH: 401,
    ErrorKind.UPSTREAM_NOT_FOUND: 404,
    ErrorKind.RESPONSE_UNPARSEABLE: 500,
    ErrorKind.EMPTY_RESPONSE: 500,
    ErrorKind.UNKNOWN: 500,
}

# Checked in order; the first kind with a matching signal wins
UPSTREAM_SIGNALS: list[tuple[ErrorKind, tuple[str, ...]]] = [
    (ErrorKind.UPSTREAM_QUOTA, ("429", "RESOURCE_EXHAUSTED", "quota")),
    (ErrorKind.UPSTREAM_UNREACHABLE, ("fetch failed", "ECONNREFUSED", "ETIMEDOUT")),
    (ErrorKind.UPSTREAM_AUTH, ("API_KEY", "401", "403", "PERMISSION_DENIED")),
    (ErrorKind.UPSTREAM_NOT_FOUND, ("404", "not found", "NOT_FOUND")),
]

_INTERNAL_KINDS: list[tuple[type, ErrorKind]] = [
    (MissingCredentialsError, ErrorKind.MISSING_CREDENTIALS),
    (BadInputError, ErrorKind.BAD_INPUT),
    (PreprocessError, ErrorKind.BAD_INPUT),
    (ValidationError, ErrorKind.BAD_INPUT),
    (EmptyResponseError, ErrorKind.EMPTY_RESPONSE),
    (ParseError, ErrorKind.RESPONSE_UNPARSEABLE),
]

_UNREACHABLE_TYPES = (UpstreamUnreachableError, ConnectionError, TimeoutError)


def describe(failure: Union[BaseException, Failure, str]) -> Failure:
    """
    Reduce a failure to message text plus an optional status hint.

    The status comes from UpstreamError.status or from a `status_code` /
    `code` attribute the way HTTP client libraries expose it.
    """
    if isinstance(failure, Failure):
        return failure
    if isinstance(failure, str):
        return Failure(message=failure)

    status: Optional[int] = None
    for attr in ("status", "status_code", "code"):
        value = getattr(failure, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            status = value
            break

    message = str(failure) or type(failure).__name__
    return Failure(message=message, status=status)


def _kind_for(failure: Union[BaseException, Failure, str], described: Failure) -> ErrorKind:
    if isinstance(failure, BaseException) and not isinstance(failure, UpstreamError):
        for exc_type, kind in _INTERNAL_KINDS:
            if isinstance(failure, exc_type):
                return kind

    signal = described.signal
    for kind, needles in UPSTREAM_SIGNALS:
        if any(needle in signal for needle in needles):
            return kind
        if kind is ErrorKind.UPSTREAM_UNREACHABLE and isinstance(failure, _UNREACHABLE_TYPES):
            return kind

    if isinstance(failure, json.JSONDecodeError):
        return ErrorKind.RESPONSE_UNPARSEABLE

    return ErrorKind.UNKNOWN


def make_error(kind: ErrorKind) -> ClassifiedError:
    """Build the ClassifiedError for a kind"""
    return ClassifiedError(
        kind=kind,
        http_status=STATUS_CODES[kind],
        message=MESSAGES[kind],
    )


def classify(failure: Union[BaseException, Failure, str]) -> ClassifiedError:
    """
    Classify a failure.

    Total and deterministic: the same failure always yields the same kind,
    and anything unrecognized becomes ErrorKind.UNKNOWN.

    Args:
        failure: An exception, a Failure descriptor or bare message text

    Returns:
        ClassifiedError with stable kind, status and message

    Example:
        classify("429 RESOURCE_EXHAUSTED").kind == ErrorKind.UPSTREAM_QUOTA
    """
    described = describe(failure)
    kind = _kind_for(failure, described)

    if kind is ErrorKind.UNKNOWN:
        logger.error(
            "Audit failed with unclassified error: %s",
            described.signal,
            exc_info=failure if isinstance(failure, BaseException) else None,
        )
    else:
        logger.warning("Audit failed (%s): %s", kind.value, described.signal)

    return make_error(kind)
