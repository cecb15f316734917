"""
Storage records returned by the storage layer.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class StoredFile:
    """A file persisted under the storage root. Immutable once stored."""

    stored_name: str
    original_name: str
    size_bytes: int
    content_type: str


@dataclass(frozen=True)
class StoredFileEntry:
    """One row of a directory listing."""

    stored_name: str
    size_bytes: int
