"""Error taxonomy for the document chat service.

Every error raised on purpose by the pipeline derives from DocChatError and
carries the HTTP status and short title the API reports to the caller.
"""
from typing import Optional


class DocChatError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    error = "Internal server error"
    retryable = False

    def __init__(self, message: str = None, details: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details

    def to_dict(self) -> dict:
        """Render the structured error body returned by the API."""
        return {"error": self.error, "details": self.details or self.message}


class ValidationError(DocChatError):
    """Bad input: missing file, wrong type, oversize, missing fields."""

    status_code = 400
    error = "Invalid request"


class ParseError(DocChatError):
    """The uploaded PDF is corrupt or password-protected."""

    status_code = 400
    error = "PDF parsing failed"


class ProviderUnavailable(DocChatError):
    """A provider is temporarily unable to serve; safe to retry later."""

    status_code = 503
    error = "Service temporarily unavailable"
    retryable = True


class ModelLoading(ProviderUnavailable):
    error = "The AI model is currently loading"


class VectorStoreUnavailable(ProviderUnavailable):
    error = "Vector store error"


class ProviderMisconfigured(DocChatError):
    """Operator intervention required (model, credentials or quota)."""

    status_code = 500
    error = "Provider misconfigured"


class ModelNotSupported(ProviderMisconfigured):
    status_code = 400
    error = "Model not supported"


class InvalidCredentials(ProviderMisconfigured):
    status_code = 401
    error = "Invalid API key"


class QuotaExceeded(ProviderMisconfigured):
    status_code = 402
    error = "API quota exceeded"


class ModelNotFound(DocChatError):
    status_code = 404
    error = "Model not available"


class ProviderRequestFailed(DocChatError):
    """The provider rejected a request for an unclassified reason."""

    status_code = 502
    error = "Provider request failed"


class UnexpectedFormat(DocChatError):
    error = "Unexpected response format from provider"


class GenerationFailed(DocChatError):
    error = "Failed to generate a response"


class MaxRetriesExceeded(DocChatError):
    error = "Max retries reached"
