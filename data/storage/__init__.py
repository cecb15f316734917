"""
Storage Layer - File storage management

Provides file system storage operations:
- Atomic local storage of validated PDF uploads
- Streaming retrieval by stored name
- Deterministic directory listings

The directory itself is the source of truth; there is no manifest.
"""

from .local import ByteStream, LocalFileStorage, StoredFileListing
from .models import StoredFile, StoredFileEntry

__all__ = [
    "ByteStream",
    "LocalFileStorage",
    "StoredFileListing",
    "StoredFile",
    "StoredFileEntry",
]
