"""
Report Come Play Backend — Custom Exception Hierarchy
=======================================================

What:  Application-specific exceptions for every error scenario the API reports.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers (registered in main.py) translate them into
       structured JSON responses with the right HTTP status code.
Who:   Raised by services, dependencies and middleware; caught by global handlers.

Exception Hierarchy:
    ReportComePlayError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    │   └── DuplicateFieldError  → 409 Conflict (near-duplicate field submission)
    ├── RateLimitExceededError   → 429 Too Many Requests
    ├── FileStorageError         → 500 Internal Server Error
    ├── DatabaseError            → 500 / 503 when the database is unreachable
    ├── ExternalServiceError     → 503 Service Unavailable (storage/email after retries)
    └── CircuitBreakerOpenError  → 503 Service Unavailable (circuit open)
"""

from typing import Any, Dict, Optional


class ReportComePlayError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only where a handler opts in)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ReportComePlayError):
    """
    Raised when client input fails a business rule.

    Schema-level problems (missing fields, bad email) are caught earlier by
    FastAPI and mapped to the same 400 response shape in main.py.
    """

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


class AuthenticationError(ReportComePlayError):
    """Missing credentials, wrong password, or a token whose user no longer exists."""

    def __init__(
        self,
        message: str = "Authentication required.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class PermissionDeniedError(ReportComePlayError):
    """
    Authenticated, but not allowed.

    Covers role checks (reporter hitting an admin route), ownership checks
    (editing someone else's field) and tokens that fail verification.
    """

    def __init__(
        self,
        message: str = "You do not have permission to access this resource.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(ReportComePlayError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so the handler can answer 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found."
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(ReportComePlayError):
    """The request collides with existing state (registered email, unique column)."""

    def __init__(
        self,
        message: str = "A record with this unique field already exists.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DuplicateFieldError(ConflictError):
    """
    Raised when a new field submission is a near-duplicate of an existing one.

    The message quotes the matched record's name and location so the
    submitter can see what they collided with.
    """

    def __init__(
        self,
        existing_id: Any,
        existing_name: str,
        existing_location: str,
    ):
        message = (
            f'Duplicate Alert! It looks like this field has already been reported as '
            f'"{existing_name}" at "{existing_location}". No need to submit it again!'
        )
        super().__init__(
            message=message,
            context={
                "existing_field": {
                    "id": str(existing_id),
                    "name": existing_name,
                    "location": existing_location,
                }
            },
        )
        self.existing_id = existing_id


class RateLimitExceededError(ReportComePlayError):
    """
    Raised when a client exceeds a per-IP request rate limit.

    Response includes a Retry-After header (seconds until the window frees up).
    """

    def __init__(
        self,
        retry_after: int = 60,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = message or (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class FileStorageError(ReportComePlayError):
    """
    Raised when writing or reading an uploaded file fails.

    The client sees a generic message; the path and OS error stay in the logs.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ReportComePlayError):
    """
    Raised when database operations fail unexpectedly.

    `unavailable=True` marks connection-level failures; the handler answers
    503 with type NETWORK_ERROR so clients can offer a retry button.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        unavailable: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.unavailable = unavailable


class ExternalServiceError(ReportComePlayError):
    """
    Raised when an upstream SaaS (object storage, email) fails after all retries.

    HTTP 503: the outage is upstream and the client may retry later.
    """

    def __init__(
        self,
        service: str = "external service",
        message: Optional[str] = None,
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = message or f"The {service} is temporarily unavailable. Please try again later."
        ctx = context or {}
        ctx["service"] = service
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.service = service
        self.retry_after = retry_after


class CircuitBreakerOpenError(ReportComePlayError):
    """
    Raised when a service's circuit breaker is OPEN.

    CLOSED → failures counted → threshold reached → OPEN (reject instantly)
    → recovery timeout elapsed → HALF_OPEN (one trial call) → CLOSED or OPEN.
    """

    def __init__(
        self,
        service: str = "external service",
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"The {service} is temporarily unavailable due to repeated failures. "
            f"Please retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["service"] = service
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.service = service
        self.recovery_time = recovery_time
