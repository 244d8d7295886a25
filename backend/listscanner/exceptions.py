"""
List Scanner Backend — Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for every failure the core classifies.
How:   Each exception carries a user-facing message and a context dict.
       The message is safe to show; the context is for logs only.
Who:   Wrapped into `Failure` results by repositories and services; raised
       by the API layer and rendered by the handlers registered in main.py.

Exception Hierarchy:
    ListScannerError (base)
    ├── ValidationError          → 400 Bad Request
    ├── ConsentRequiredError     → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    ├── NoItemsDetectedError     → 422 Unprocessable Entity
    ├── ImageCropError           → 422 Unprocessable Entity
    ├── CreationFailedError      → 500 Internal Server Error
    ├── DatabaseError            → 500 Internal Server Error
    ├── FileStorageError         → 500 Internal Server Error
    ├── OcrServiceError          → 503 Service Unavailable
    └── CircuitBreakerOpenError  → 503 Service Unavailable

Low-level causes (SQLAlchemy errors, OSError, SDK errors) are attached with
`raise ... from` / `__cause__` and never copied into `message`.
"""

from typing import Any, Dict, Optional


class ListScannerError(Exception):
    """
    Base exception for all List Scanner application errors.

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


class ValidationError(ListScannerError):
    """
    Raised when client input fails validation.

    When:    Unsupported upload type, empty or oversized file, item text too
             short after normalization, scanning a photo that is already
             being processed.
    HTTP:    400 Bad Request
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


class NotFoundError(ListScannerError):
    """
    Raised by the API and workflow layers when a resource does not exist.

    Store and repository point lookups return an absent value instead; this
    exception is the HTTP-facing translation of that absence.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class NoItemsDetectedError(ListScannerError):
    """
    The text parser produced zero item candidates.

    Recoverable by the user (retake the photo or add items manually). The
    list-creation service returns this before opening any transaction, so
    nothing is written.
    HTTP:    422 Unprocessable Entity
    """

    def __init__(
        self,
        message: str = "No list items detected. Ensure your list is clearly written.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class CreationFailedError(ListScannerError):
    """
    The list-creation transaction failed and was rolled back.

    The underlying store exception is chained as `__cause__` for logging;
    the message stays generic.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Failed to create list. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(ListScannerError):
    """
    A repository operation failed in the store.

    When:    Connection lost, constraint violation, lock timeout, etc.
    HTTP:    500 Internal Server Error

    Security Note:
        The message is generic. SQL text, constraint names and driver
        errors are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(ListScannerError):
    """
    Raised when reading, writing or deleting a stored photo fails.

    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class OcrServiceError(ListScannerError):
    """
    Raised when the OCR engine fails after all retries.

    HTTP:    503 Service Unavailable

    Attributes:
        retry_after: Suggested seconds before the client tries again.
    """

    def __init__(
        self,
        message: str = "Text recognition service is temporarily unavailable",
        retry_after: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if retry_after:
            ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class CircuitBreakerOpenError(ListScannerError):
    """
    Raised when the OCR circuit breaker is OPEN.

    How circuit breaker works:
        CLOSED (normal) → failures increment counter
        → After N failures → OPEN (reject all calls for the recovery time)
        → After the recovery time → HALF-OPEN (allow one test call)
        → If test succeeds → CLOSED
        → If test fails → OPEN again
    HTTP:    503 Service Unavailable
    """

    def __init__(
        self,
        recovery_time: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Text recognition is temporarily unavailable due to repeated failures. "
            f"The service will automatically retry in approximately {recovery_time} seconds."
        )
        ctx = context or {}
        ctx["recovery_time"] = recovery_time
        super().__init__(message=message, context=ctx)
        self.recovery_time = recovery_time


class ConsentRequiredError(ListScannerError):
    """
    The user has not agreed to photos being sent to the cloud OCR engine.

    Recoverable: PUT /api/consent with {"consented": true}, then scan again.
    HTTP:    403 Forbidden
    """

    def __init__(
        self,
        message: str = (
            "Scanning sends the photo to a cloud text recognition service. "
            "Accept the privacy notice to continue."
        ),
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ImageCropError(ListScannerError):
    """
    The selected region of a photo could not be cut out.

    When:    The stored image cannot be decoded, or it is too large to load.
    HTTP:    422 Unprocessable Entity
    """

    def __init__(
        self,
        message: str = "Failed to crop image. Try scanning the full image instead.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
