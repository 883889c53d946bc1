"""
Custom exceptions for the notes store.

All stores and views raise these exceptions so the HTTP layer can map
them to responses without knowing which backend is in use.
"""


class NotesStorageError(Exception):
    """Base exception for all notes store errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class AuthenticationError(NotesStorageError):
    """Raised when a request has no resolvable identity."""

    def __init__(self, message: str = "Authentication failed", reason: str | None = None):
        details = {}
        if reason:
            details["reason"] = reason
        super().__init__(message, details)
        self.reason = reason


class AuthenticationRequiredError(AuthenticationError):
    """Raised when authentication is required but not present."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ValidationError(NotesStorageError):
    """Raised when request data fails validation."""

    def __init__(self, field: str, reason: str, value: str | None = None):
        details = {"field": field, "reason": reason}
        if value is not None:
            details["value"] = value
        super().__init__(f"Validation failed for {field}: {reason}", details)
        self.field = field
        self.reason = reason
        self.value = value


class NotFoundError(NotesStorageError):
    """Base class for lookups that matched nothing."""

    pass


class ContentNotFoundError(NotFoundError):
    """Raised when no content record matches an ID."""

    def __init__(self, content_id: str, user_id: str | None = None):
        details = {"content_id": content_id}
        if user_id:
            details["user_id"] = user_id
        super().__init__(f"Content not found: {content_id}", details)
        self.content_id = content_id
        self.user_id = user_id


class RecordNotFoundError(NotFoundError):
    """Raised when a record's payload cannot be loaded."""

    def __init__(self, sequence: int, reason: str):
        super().__init__(
            f"Record {sequence} not readable: {reason}",
            {"sequence": sequence, "reason": reason},
        )
        self.sequence = sequence
        self.reason = reason


class CorruptionError(RecordNotFoundError):
    """Raised when stored data does not match its index entry.

    Fatal for the affected record only; other records stay readable.
    """

    pass


class StorageIOError(NotesStorageError):
    """Raised when a storage I/O operation fails."""

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Storage I/O error during {operation}"
        if path:
            message += f": {path}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause


class StorageConnectionError(NotesStorageError):
    """Raised when connection to the remote store fails.

    Note: Named StorageConnectionError to avoid shadowing the builtin ConnectionError.
    """

    def __init__(self, endpoint: str, cause: Exception | None = None):
        details = {"endpoint": endpoint}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Connection failed to {endpoint}", details)
        self.endpoint = endpoint
        self.cause = cause
