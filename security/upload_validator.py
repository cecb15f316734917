"""
Upload Validator - Security Layer

Validates an incoming upload before anything touches the disk.

@.architecture
Incoming: api/endpoints/files.py --- {bytes buffer, str declared content type, str declared filename, int max size}
Processing: validate_upload(), sanitize_display_name(), generate_stored_name() --- {4 jobs: size_validation, media_type_validation, signature_check, name_generation}
Outgoing: data/storage/local.py --- {ValidatedUpload, raises PayloadTooLarge/UnsupportedMediaType/InvalidArgument}

Declared metadata is never trusted on its own: the content type must match
and the bytes must carry the PDF signature. The stored name is generated
here and never derived from client text.
"""

import re
import uuid
from dataclasses import dataclass
from typing import Optional

from core.errors import InvalidArgument, PayloadTooLarge, UnsupportedMediaType
from security.path_resolver import final_segment

PDF_MEDIA_TYPE = "application/pdf"
PDF_MAGIC = b"%PDF-"
STORED_NAME_SUFFIX = ".pdf"

STORED_NAME_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}\.pdf"
)

MAX_DISPLAY_NAME_LENGTH = 255


@dataclass(frozen=True)
class ValidatedUpload:
    """An upload that passed every check, ready to be stored."""

    content: bytes
    original_name: str
    stored_name: str
    content_type: str = PDF_MEDIA_TYPE

    @property
    def size_bytes(self) -> int:
        return len(self.content)


def generate_stored_name() -> str:
    """Opaque server-side name: a random uuid4 plus the fixed extension."""
    return f"{uuid.uuid4()}{STORED_NAME_SUFFIX}"


def is_generated_name(name: str) -> bool:
    return STORED_NAME_PATTERN.fullmatch(name) is not None


def sanitize_display_name(declared_filename: Optional[str]) -> str:
    """
    Reduce a client file name to something safe to echo back.

    Keeps the final path segment only and drops control characters. The
    result is for display; it is never joined to a path.
    """
    if not declared_filename:
        return ""
    name = final_segment(declared_filename)
    name = "".join(char for char in name if ord(char) >= 32 and char != "\x7f")
    return name.strip()[:MAX_DISPLAY_NAME_LENGTH]


def _media_type(declared_content_type: Optional[str]) -> str:
    # "application/PDF; charset=binary" -> "application/pdf"
    if not declared_content_type:
        return ""
    return declared_content_type.split(";", 1)[0].strip().lower()


def validate_upload(
    buffer: bytes,
    declared_content_type: Optional[str],
    declared_filename: Optional[str],
    max_size_bytes: int,
) -> ValidatedUpload:
    """
    Validate an upload and assign it a stored name.

    Checks run in a fixed order: size, declared type, magic bytes, filename.

    Args:
        buffer: Raw file bytes (may be truncated at max_size_bytes + 1)
        declared_content_type: Content type sent by the client
        declared_filename: File name sent by the client
        max_size_bytes: Upload ceiling

    Returns:
        ValidatedUpload with sanitized original name and generated stored name

    Raises:
        PayloadTooLarge: If the buffer exceeds max_size_bytes
        UnsupportedMediaType: If the type or signature is not PDF
        InvalidArgument: If no usable file name was supplied
    """
    if len(buffer) > max_size_bytes:
        raise PayloadTooLarge(len(buffer), max_size_bytes)

    media_type = _media_type(declared_content_type)
    if media_type != PDF_MEDIA_TYPE:
        raise UnsupportedMediaType(f"Declared content type {declared_content_type!r} is not {PDF_MEDIA_TYPE}")

    if not buffer.startswith(PDF_MAGIC):
        raise UnsupportedMediaType("Content does not start with the PDF signature")

    original_name = sanitize_display_name(declared_filename)
    if not original_name:
        raise InvalidArgument("A non-empty filename is required")

    return ValidatedUpload(
        content=bytes(buffer),
        original_name=original_name,
        stored_name=generate_stored_name(),
    )
