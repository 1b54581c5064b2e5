"""
Exceptions raised along the audit pipeline.

Every failure the pipeline itself detects derives from AuditError, so the
classifier can map it to a stable error kind without inspecting text.
Failures coming back from a vision provider are re-raised as UpstreamError
carrying the provider's message and HTTP status (when it has one).
"""

from typing import Optional


class AuditError(Exception):
    """Base exception for UX-Ray"""


class MissingCredentialsError(AuditError):
    """The selected provider has no API key configured."""


class BadInputError(AuditError):
    """No image was supplied, or the supplied bytes are not an image."""


class PreprocessError(AuditError):
    """The image could not be decoded or re-encoded for upload."""


class ValidationError(AuditError):
    """An inference request could not be built from the given parts."""


class EmptyResponseError(AuditError):
    """The model returned no text at all."""


class ParseError(AuditError):
    """
    The model's text is not valid JSON or does not match the report schema.

    The underlying fault (json.JSONDecodeError or pydantic's
    ValidationError) is kept on `cause` and chained as __cause__.
    """

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class UpstreamError(AuditError):
    """
    A vision provider call failed.

    Attributes:
        status: HTTP status reported by the provider, if any
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UpstreamUnreachableError(UpstreamError):
    """The provider could not be reached (DNS, refused, timed out)."""
