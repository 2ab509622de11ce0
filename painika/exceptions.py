"""Custom exceptions for Painika."""


class PainikaError(Exception):
    """Base class for all Painika errors."""


class ConfigurationError(PainikaError):
    """Raised when required configuration (e.g. the API credential) is missing or invalid."""


class ModelClientError(PainikaError):
    """Base class for failures talking to the remote completion service."""


class TransportError(ModelClientError):
    """Raised when the request never produced an HTTP response."""


class RemoteError(ModelClientError):
    """Raised when the completion service answers with a non-2xx status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Groq API error: {status} - {body}")

    @property
    def retryable(self) -> bool:
        """Rate limits and server errors are worth another attempt."""
        return self.status == 429 or self.status >= 500


class ExhaustedRetries(ModelClientError):
    """Raised when every attempt allowed by the retry policy has failed."""

    def __init__(self, attempts: int, last_error: Exception | None):
        self.attempts = attempts
        self.last_error = last_error
        details = str(last_error) if last_error else "Unknown error"
        super().__init__(f"Failed to complete with Groq after {attempts} attempts: {details}")


class MalformedResponse(ModelClientError):
    """Raised when the completion service returns a body that cannot be decoded."""


class ToolNotFound(PainikaError):
    """Raised when a requested tool is not registered."""


class ToolValidationError(PainikaError):
    """Raised when tool parameters do not match the declared schema."""
