"""
API Schemas

Pydantic models for request/response validation.
"""

from .files import (
    ErrorResponse,
    FileEntry,
    UploadResponse,
)

__all__ = [
    "ErrorResponse",
    "FileEntry",
    "UploadResponse",
]
