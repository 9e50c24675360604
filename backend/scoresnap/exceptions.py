"""
ScoreSnap Web — Custom Exception Hierarchy
===========================================

What:  Application-specific exceptions for the proxy routes and pages.
Why:   Routes raise; global handlers (registered in main.py) turn each
       exception type into the right status code and a flat JSON body:

           {"error": "<message>"}                      # always
           {"error": "<message>", "details": <...>}    # when details are set

How:   Each exception carries a user-facing `message`, optional user-facing
       `details`, and a `context` dict that is logged but never returned.

Exception Hierarchy:
    ScoreSnapError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── NotFoundError            → 404 Not Found
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── ConfigurationError       → 500 (server-side setting missing)
    ├── UpstreamServiceError     → 500 (building/fetching from Google failed)
    │   ├── MapGenerationError
    │   └── PhotoFetchError
    └── CircuitBreakerOpenError  → 503 Service Unavailable (circuit open)
"""

from typing import Any, Dict, Optional


class ScoreSnapError(Exception):
    """
    Base exception for all ScoreSnap application errors.

    Attributes:
        message:  User-facing error description (returned as "error")
        details:  Optional user-facing diagnostic (returned as "details")
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Any = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details
        self.context = context or {}
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(ScoreSnapError):
    """
    Raised when client input fails validation.

    When:    Missing address/place_id, non-numeric or non-positive sizes.
    HTTP:    400 Bad Request

    Example response:
        {"error": "address is required"}
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(ScoreSnapError):
    """
    Raised when a requested resource does not exist.

    When:    Place Details has no photo for the place; unmatched API path.
    HTTP:    404 Not Found
    """

    status_code = 404


class ConfigurationError(ScoreSnapError):
    """
    Raised when a server-side setting required for the request is missing.

    When:    GOOGLE_PLACES_API_KEY unset and a proxy route is called.
    HTTP:    500 Internal Server Error

    Recoverable: the request fails, the process keeps running.
    """

    def __init__(
        self,
        message: str = "Google Places API key not configured",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamServiceError(ScoreSnapError):
    """
    Raised when building or fetching an external Google URL fails.

    HTTP:    500 Internal Server Error
    Body:    {"error": <summary>, "details": <diagnostic message>}

    Security Note:
        `details` is built from the underlying exception message. Callers
        scrub the API key out of it before raising (see `scrub_secret`).
    """


class MapGenerationError(UpstreamServiceError):
    """Static map URL could not be built."""

    def __init__(
        self,
        details: str = "Unknown error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message="Failed to generate static map", details=details, context=context
        )


class PhotoFetchError(UpstreamServiceError):
    """Place Details lookup for a photo failed (transport, decoding, ...)."""

    def __init__(
        self,
        details: str = "Unknown error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="Failed to fetch photo", details=details, context=context)


class CircuitBreakerOpenError(ScoreSnapError):
    """
    Raised when the Places circuit breaker is OPEN.

    When:    After cb_failure_threshold consecutive Place Details failures.
    HTTP:    503 Service Unavailable, with Retry-After

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all lookups for recovery_timeout)
        → After recovery_timeout → HALF-OPEN (allow one test call)
        → If test succeeds → CLOSED
        → If test fails → OPEN again
    """

    status_code = 503

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            "Places service is temporarily unavailable due to repeated failures. "
            f"Try again in approximately {recovery_time} seconds."
        )
        super().__init__(
            message=message, details={"recovery_time": recovery_time}, context=context
        )
        self.recovery_time = recovery_time


class RateLimitExceededError(ScoreSnapError):
    """
    Raised when a client exceeds the per-IP request rate limit.

    HTTP:    429 Too Many Requests, with Retry-After
    """

    status_code = 429

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        super().__init__(
            message=message, details={"retry_after": retry_after}, context=context
        )
        self.retry_after = retry_after


def scrub_secret(text: str, secret: Optional[str]) -> str:
    """Replaces every occurrence of `secret` in `text` with a placeholder."""
    if not secret:
        return text
    return text.replace(secret, "[redacted]")
