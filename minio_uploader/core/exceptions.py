from typing import Any, Dict, Optional


class UploaderError(Exception):
    """Base exception for all uploader errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(UploaderError):
    """Raised when a required argument is missing, blank or out of range."""
    pass


class IncompleteUploadError(UploaderError):
    """Raised when compose finds a chunk count other than total_pieces."""
    pass


class StoreError(UploaderError):
    """Raised when the object store rejects or fails an operation.

    The original SDK exception is kept on ``inner`` (and as ``__cause__``).
    """

    def __init__(self, message: str, inner: Optional[BaseException] = None,
                 details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.inner = inner


class ObjectNotFoundError(StoreError):
    """Raised when a bucket or object does not exist."""
    pass


class CleanupWarning(UploaderError):
    """A staging chunk that could not be deleted after a successful compose.

    Never raised: compose reports these through logging and still succeeds.
    """

    def __init__(self, object_name: str, reason: str) -> None:
        super().__init__(
            f"chunk '{object_name}' could not be deleted: {reason}",
            {"object_name": object_name, "reason": reason},
        )
        self.object_name = object_name
        self.reason = reason


class RangeNotSatisfiableError(ValidationError):
    """Raised when a requested byte range lies outside the object."""
    pass
