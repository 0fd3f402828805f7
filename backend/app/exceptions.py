"""
NoteMirror Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for the table store and mirror.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by NoteStore, FileMirror and NoteService; caught by global handlers.

Exception Hierarchy:
    NoteMirrorError (base)
    ├── NotFoundError            → 404 Not Found
    ├── StoreUnavailableError    → 500 Internal Server Error
    └── MirrorIOError            → 500 Internal Server Error
        └── MirrorSyncError      → 500, table written but mirror stale
"""

from typing import Any, Dict, Optional


class NoteMirrorError(Exception):
    """
    Base exception for all NoteMirror application errors.

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


class NotFoundError(NoteMirrorError):
    """
    Raised when an operation references an identifier that does not exist.

    When:    get/update/delete of an id absent from the table, or delete of a
             mirror file that is already gone.
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
        self.resource_id = resource_id


class StoreUnavailableError(NoteMirrorError):
    """
    Raised when the table backend is unreachable or rejects an operation.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. The driver error
    is kept in context and logged server-side only.
    """

    def __init__(
        self,
        message: str = "The note store is unavailable. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MirrorIOError(NoteMirrorError):
    """
    Raised when a mirror file write or delete fails.

    When:    Disk full, permission denied, directory not writable, I/O error.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "Mirror file operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MirrorSyncError(MirrorIOError):
    """
    Raised when the table write succeeded but the following mirror write failed.

    This is a partial success: the note (attached as `note`) is persisted in
    the table with its new body while `<id>.md` is missing or stale. Nothing
    is rolled back and nothing is retried.
    """

    def __init__(
        self,
        note: Any,
        operation: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["note_id"] = note.id
        ctx["operation"] = operation
        super().__init__(
            message=(
                f"Note '{note.id}' was saved, but its mirror file could not be "
                f"written during {operation}. The mirror copy is stale."
            ),
            context=ctx,
        )
        self.note = note
        self.operation = operation
