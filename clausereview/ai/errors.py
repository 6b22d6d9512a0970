from enum import Enum


class ErrorKind(str, Enum):
    RATE_LIMIT = "RATE_LIMIT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    ALL_PROVIDERS_FAILED = "ALL_PROVIDERS_FAILED"


# Used by the HTTP layer; the orchestrator never looks at status codes.
HTTP_STATUS_BY_KIND = {
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.API_ERROR: 502,
    ErrorKind.NETWORK_ERROR: 502,
    ErrorKind.ALL_PROVIDERS_FAILED: 503,
}


class ConfigurationError(Exception):
    """Fatal startup problem (no providers, bad settings)."""


class ProviderError(Exception):
    """Base error for classified provider failures."""

    kind = ErrorKind.API_ERROR
    retryable = True
    triggers_fallback = True

    def __init__(self, message, provider=None, retry_after_ms=None):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.retry_after_ms = retry_after_ms

    def __str__(self):
        if self.provider:
            return f"[{self.provider}] {self.message}"
        return self.message

    def to_dict(self):
        return {
            "kind": self.kind.value,
            "message": self.message,
            "provider": self.provider,
            "retry_after_ms": self.retry_after_ms,
        }


class ValidationError(ProviderError):
    """Request is malformed. Never retried, never falls back."""

    kind = ErrorKind.VALIDATION_ERROR
    retryable = False
    triggers_fallback = False


class RateLimitError(ProviderError):
    """Provider is rate limiting."""

    kind = ErrorKind.RATE_LIMIT

    @property
    def retryable(self):
        # Wait-and-retry only when the provider said how long to wait.
        return self.retry_after_ms is not None


class ApiError(ProviderError):
    """Provider answered, but not with a usable result (5xx, bad body)."""

    kind = ErrorKind.API_ERROR


class NetworkError(ProviderError):
    """Transport failure (timeouts, refused connections, DNS)."""

    kind = ErrorKind.NETWORK_ERROR


class AllProvidersFailedError(ProviderError):
    """Every configured provider failed and not all of them were rate limited."""

    kind = ErrorKind.ALL_PROVIDERS_FAILED
    retryable = False
    triggers_fallback = False

    def __init__(self, errors, message="All AI services failed. Please try again later."):
        super().__init__(message)
        self.errors = list(errors)

    def to_dict(self):
        data = super().to_dict()
        data["errors"] = [error.to_dict() for error in self.errors]
        return data
