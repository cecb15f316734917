"""
File Schemas

Pydantic models for the upload, download and listing endpoints.

@.architecture
Incoming: api/endpoints/files.py --- {StoredFile, StoredFileEntry records}
Processing: Pydantic validation and serialization --- {2 jobs: data_validation, serialization}
Outgoing: api/endpoints/files.py, Frontend (HTTP) --- {UploadResponse, FileEntry, ErrorResponse as camelCase JSON}
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from data.storage.models import StoredFile, StoredFileEntry


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Upload
# =============================================================================

class UploadResponse(_CamelModel):
    """Response after a successful upload."""
    stored_name: str
    original_name: str
    size_bytes: int = Field(..., ge=0)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "storedName": "1b4e28ba-2fa1-4d3b-a3f5-ef19b5a7633b.pdf",
                "originalName": "report.pdf",
                "sizeBytes": 2048,
            }
        }
    )

    @classmethod
    def from_stored(cls, stored: StoredFile) -> "UploadResponse":
        return cls(
            stored_name=stored.stored_name,
            original_name=stored.original_name,
            size_bytes=stored.size_bytes,
        )


# =============================================================================
# Listing
# =============================================================================

class FileEntry(_CamelModel):
    """One stored file in GET /files."""
    stored_name: str
    size_bytes: int = Field(..., ge=0)

    @classmethod
    def from_entry(cls, entry: StoredFileEntry) -> "FileEntry":
        return cls(stored_name=entry.stored_name, size_bytes=entry.size_bytes)


# =============================================================================
# Errors
# =============================================================================

class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""
    error: str
