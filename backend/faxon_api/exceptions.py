"""
Faxon Portal API — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each error tier.
How:   Each exception carries a user-facing message and an optional context
       dict. Global handlers in main.py turn them into the JSON error
       envelope with the matching HTTP status code.
Who:   Raised by services and provider clients; caught by global handlers.

Exception Hierarchy:
    FaxonError (base)
    ├── ValidationError            → 400 Bad Request
    ├── NotFoundError              → 404 Not Found
    ├── RateLimitExceededError     → 429 Too Many Requests
    ├── DatabaseError              → 500 (generic message)
    │   └── TablesNotFoundError    → 500 (distinguished message, SQLSTATE 42P01)
    ├── StorageProviderError       → 500
    └── EmailDeliveryError         → 500
"""

from typing import Any, Dict, Optional


class FaxonError(Exception):
    """
    Base exception for all Faxon Portal application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(FaxonError):
    """
    Raised when client input fails validation.

    When:    Missing body fields, non-numeric ids, disallowed MIME type,
             oversized upload, malformed image URL.
    HTTP:    400 Bad Request

    Example response:
        {
            "success": false,
            "error": "validation_error",
            "message": "File size too large. Maximum size is 5MB.",
            "details": {"field": "file", "max_size": 5242880}
        }
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


class NotFoundError(FaxonError):
    """
    Raised when a requested row does not exist or is not visible to the caller.

    When:    Unknown/inactive team member, document not owned by the requester.
    HTTP:    404 Not Found

    The message is passed explicitly because each route has its own wording
    ("User not found or account is inactive", "Document not found or
    unauthorized"); the resource name and id go to context for the logs.
    """

    def __init__(
        self,
        message: Optional[str] = None,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(FaxonError):
    """
    Raised when database operations fail unexpectedly.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic. The SQL error
        is logged server-side only.
    """

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class TablesNotFoundError(DatabaseError):
    """
    Raised when PostgreSQL reports SQLSTATE 42P01 (undefined_table).

    The portal has no migrations of its own; this is what an operator sees
    when the schema was never provisioned, so it gets its own message.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Database tables not found. Please contact support.",
            context=context,
        )


class StorageProviderError(FaxonError):
    """
    Raised when Supabase Storage or Zoho WorkDrive rejects a call.

    HTTP:    500 Internal Server Error
    Context: provider name, HTTP status and a truncated response body.
    """

    def __init__(
        self,
        message: str = "Storage provider request failed",
        provider: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if provider:
            ctx["provider"] = provider
        super().__init__(message=message, context=ctx)
        self.provider = provider


class EmailDeliveryError(FaxonError):
    """Raised when the transactional e-mail provider fails to accept a message."""

    def __init__(
        self,
        message: str = "Failed to send OTP email. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RateLimitExceededError(FaxonError):
    """
    Raised when a client exceeds a request budget: the per-IP limit
    (built by RateLimitMiddleware) or the per-member OTP resend limit
    (raised by AuthService.resend_otp).

    HTTP:    429 Too Many Requests (with Retry-After header)
    """

    def __init__(
        self,
        retry_after: int = 60,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = message or (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after
