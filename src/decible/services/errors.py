"""
Error taxonomy for decible.

Every failure a handler can report maps to one ``DecibleError`` subclass
with a stable machine-readable code and an HTTP status. Messages carried by
these exceptions are safe to show to clients; upstream detail belongs in
``details`` and in logs, never in ``message``.

Error Response Format:
    {
        "ok": false,
        "error": "PROVIDER_FAILED",
        "message": "Failed to generate audio"
    }
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ErrorCode:
    """Standardized error codes."""
    INVALID_INPUT = "INVALID_INPUT"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_CREDITS = "INSUFFICIENT_CREDITS"
    RATE_LIMITED = "RATE_LIMITED"
    PROVIDER_FAILED = "PROVIDER_FAILED"
    STORAGE_FAILED = "STORAGE_FAILED"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    CONFIG_ERROR = "CONFIG_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


STATUS_MAP: Dict[str, int] = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.AUTH_REQUIRED: 401,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INSUFFICIENT_CREDITS: 402,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.PROVIDER_FAILED: 500,
    ErrorCode.STORAGE_FAILED: 500,
    ErrorCode.PERSISTENCE_FAILED: 500,
    ErrorCode.CONFIG_ERROR: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


class DecibleError(Exception):
    """
    Base exception for service errors.

    Attributes:
        message: Client-safe description.
        code: One of the ErrorCode constants.
        details: Extra context for logs and debugging.
    """

    code_default = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.code_default
        self.details = details or {}

    @property
    def status_code(self) -> int:
        return STATUS_MAP.get(self.code, 500)

    @property
    def headers(self) -> Dict[str, str]:
        """Extra response headers for this error."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON error body."""
        return {
            "ok": False,
            "error": self.code,
            "message": self.message,
        }


class InvalidInputError(DecibleError):
    code_default = ErrorCode.INVALID_INPUT


class AuthRequiredError(DecibleError):
    code_default = ErrorCode.AUTH_REQUIRED

    def __init__(self, message: str = "Authentication required", **kwargs: Any):
        super().__init__(message, **kwargs)


class NotFoundError(DecibleError):
    code_default = ErrorCode.NOT_FOUND


class ProviderError(DecibleError):
    """The speech provider returned an error, an empty body or was unreachable."""

    code_default = ErrorCode.PROVIDER_FAILED

    def __init__(self, message: str = "Failed to generate audio", **kwargs: Any):
        super().__init__(message, **kwargs)


class StorageError(DecibleError):
    """Uploading generated audio to object storage failed."""

    code_default = ErrorCode.STORAGE_FAILED

    def __init__(self, message: str = "Failed to store generated audio", **kwargs: Any):
        super().__init__(message, **kwargs)


class PersistenceError(DecibleError):
    """Reading or writing backend tables failed."""

    code_default = ErrorCode.PERSISTENCE_FAILED

    def __init__(self, message: str = "Failed to access generation history", **kwargs: Any):
        super().__init__(message, **kwargs)


class ConfigurationError(DecibleError):
    """A required credential or endpoint is not configured."""

    code_default = ErrorCode.CONFIG_ERROR

    def __init__(self, message: str = "Service is not configured", **kwargs: Any):
        super().__init__(message, **kwargs)


class InsufficientCreditsError(DecibleError):
    """The caller's credit balance does not cover the request."""

    code_default = ErrorCode.INSUFFICIENT_CREDITS

    def __init__(self, credits_needed: int, credits_remaining: int, **kwargs: Any):
        super().__init__(
            f"You need {credits_needed} credits but only have {credits_remaining}. "
            "Please upgrade or purchase more credits.",
            **kwargs,
        )
        self.credits_needed = credits_needed
        self.credits_remaining = credits_remaining

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["creditsNeeded"] = self.credits_needed
        body["creditsRemaining"] = self.credits_remaining
        return body


class RateLimitedError(DecibleError):
    """
    Too many generations in the current window.

    Carries the window state so the response can advertise it through the
    X-RateLimit-* and Retry-After headers.
    """

    code_default = ErrorCode.RATE_LIMITED

    def __init__(self, limit: int, remaining: int, reset_at: int, retry_after: int, **kwargs: Any):
        super().__init__(f"Too many requests. Please wait {retry_after} seconds.", **kwargs)
        self.limit = limit
        self.remaining = remaining
        self.reset_at = reset_at
        self.retry_after = retry_after

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
            "Retry-After": str(self.retry_after),
        }

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["retryAfter"] = self.retry_after
        return body
