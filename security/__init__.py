"""
Security Module

Input handling for untrusted file names and uploads:
- Path resolution confined to the storage root
- Upload validation (size, declared type, PDF signature)
- Stored name generation
"""

from .path_resolver import final_segment, resolve_storage_path
from .upload_validator import (
    PDF_MAGIC,
    PDF_MEDIA_TYPE,
    STORED_NAME_PATTERN,
    ValidatedUpload,
    generate_stored_name,
    is_generated_name,
    sanitize_display_name,
    validate_upload,
)

__all__ = [
    # Path resolution
    "final_segment",
    "resolve_storage_path",

    # Upload validation
    "PDF_MAGIC",
    "PDF_MEDIA_TYPE",
    "STORED_NAME_PATTERN",
    "ValidatedUpload",
    "generate_stored_name",
    "is_generated_name",
    "sanitize_display_name",
    "validate_upload",
]
