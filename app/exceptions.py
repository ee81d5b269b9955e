from typing import Any, Mapping, Optional


class MealForgeError(Exception):
    """Base class for application errors.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context (field errors, validation info)
        code: optional machine-readable error code
        http_status: suggested HTTP status code for handlers
    """

    http_status = 500
    default_message = "Application error"
    default_code = "APPLICATION_ERROR"

    def __init__(self, message: Optional[str] = None, details: Optional[Mapping[str, Any]] = None, code: Optional[str] = None):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"message": self.message}
        if self.code:
            payload["code"] = self.code
        if self.details:
            payload["details"] = self.details
        return payload

    def __str__(self) -> str:
        return self.message


class NotFoundError(MealForgeError):
    """Raised when a requested resource was not found. http_status is 404."""

    http_status = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class UnauthorizedError(MealForgeError):
    """Raised when the caller identity is missing. http_status is 401."""

    http_status = 401
    default_message = "Unauthorized"
    default_code = "UNAUTHORIZED"


class OperationCancelledError(MealForgeError):
    """Raised when a save runs past its deadline; the open transaction is rolled back."""

    http_status = 503
    default_message = "Operation cancelled"
    default_code = "CANCELLED"


class RateLimitExceededError(MealForgeError):
    """Raised when an identifier used up its request quota for the current window.

    Carries everything a handler needs for the 429 response: seconds until the
    window resets, the configured limit, the remaining quota (always zero) and
    the reset timestamp in epoch milliseconds.
    """

    http_status = 429
    default_message = "Too many requests"
    default_code = "RATE_LIMITED"

    def __init__(
        self,
        identifier: str,
        retry_after: int,
        limit: int,
        reset_at: int,
        window_ms: int,
        remaining: int = 0,
    ):
        plural = "" if retry_after == 1 else "s"
        super().__init__(
            f"Rate limit exceeded. Please try again in {retry_after} second{plural}.",
            code="RATE_LIMITED",
        )
        self.identifier = identifier
        self.retry_after = retry_after
        self.limit = limit
        self.remaining = remaining
        self.reset_at = reset_at
        self.window_ms = window_ms

    def headers(self) -> dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }

    def to_dict(self) -> dict:
        return {
            "error": self.default_message,
            "message": self.message,
            "retryAfter": self.retry_after,
            "limit": self.limit,
            "remaining": self.remaining,
            "windowMs": self.window_ms,
        }
