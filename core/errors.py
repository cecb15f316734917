"""
File Service Errors

Exception taxonomy shared by the security, storage and API layers.

@.architecture
Incoming: security/path_resolver.py, security/upload_validator.py, data/storage/local.py, api/endpoints/files.py --- {raise sites for validation, traversal and I/O failures}
Processing: FileServiceError subclasses --- {1 job: error_classification}
Outgoing: api/middleware/error_handler.py --- {status_code and client-safe public_message per error type}

Every error carries the HTTP status it maps to and a message that is safe
to send to a client. The detailed message (``str(error)``) is for logs only.
"""

from typing import Optional


class FileServiceError(Exception):
    """Base class for errors raised while handling a file request."""

    status_code: int = 500
    default_public_message: str = "Internal server error"

    def __init__(self, message: str = "", public_message: Optional[str] = None):
        super().__init__(message or self.default_public_message)
        self.public_message = public_message or self.default_public_message


class InvalidArgument(FileServiceError):
    """Malformed or empty name or form field."""

    status_code = 400
    default_public_message = "Invalid request"

    def __init__(self, message: str = ""):
        # The reason is safe to show: it never echoes a path back.
        super().__init__(message, public_message=message or None)


class PayloadTooLarge(FileServiceError):
    status_code = 413
    default_public_message = "Request entity too large"

    def __init__(self, size_bytes: int, max_size_bytes: int):
        self.size_bytes = size_bytes
        self.max_size_bytes = max_size_bytes
        super().__init__(
            f"Upload of {size_bytes} bytes exceeds limit of {max_size_bytes} bytes",
            public_message=f"File exceeds maximum upload size of {max_size_bytes} bytes",
        )


class UnsupportedMediaType(FileServiceError):
    status_code = 415
    default_public_message = "Only PDF files are accepted"


class PathTraversalRejected(FileServiceError):
    """
    Candidate name would resolve outside the storage root.

    Reported to clients exactly like NotFound so the response never confirms
    whether something exists outside the allowed set.
    """

    status_code = 404
    default_public_message = "File not found"


class NotFound(FileServiceError):
    status_code = 404
    default_public_message = "File not found"


class StorageIOError(FileServiceError):
    """Write or read failure (disk full, permission denied, name collision)."""

    status_code = 500
    default_public_message = "Internal server error"
