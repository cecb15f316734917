"""
File Endpoints

Upload, download and listing of stored PDF files.

@.architecture
Incoming: api/router.py, Frontend (HTTP POST/GET) --- {multipart/form-data uploads to /upload, GET /download?name=, GET /download/{name}, GET /files}
Processing: upload_file(), download_file(), download_file_by_path(), list_files() --- {6 jobs: bounded_read, upload_validation, storage_management, streaming, listing, recording}
Outgoing: security/upload_validator.py, data/storage/local.py, Frontend (HTTP) --- {UploadResponse, StreamingResponse of PDF bytes, List[FileEntry]}

Handlers stay thin: validation lives in security/, persistence in
data/storage/, and error translation in the error handler middleware.
"""

from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import StreamingResponse

from api.dependencies import get_settings, get_storage, setup_request_context
from api.schemas.files import ErrorResponse, FileEntry, UploadResponse
from config.settings import Settings
from core.errors import FileServiceError, InvalidArgument, StorageIOError
from data.storage import ByteStream, LocalFileStorage
from monitoring import counter, get_logger, histogram
from security.upload_validator import PDF_MEDIA_TYPE, validate_upload

logger = get_logger(__name__)
router = APIRouter(tags=["files"])

MAX_NAME_LENGTH = 255

# Metrics
file_operations = counter(
    'pdfvault_file_operations_total', 'Total file operations', ['operation', 'status']
)
upload_sizes = histogram(
    'pdfvault_upload_size_bytes',
    'Size of stored uploads in bytes',
    buckets=[1024, 16 * 1024, 128 * 1024, 1024 * 1024, 4 * 1024 * 1024, 16 * 1024 * 1024]
)


def _outcome(error: FileServiceError) -> str:
    return "error" if isinstance(error, StorageIOError) else "rejected"


def _content_disposition(filename: str) -> str:
    quoted = quote(filename)
    if quoted != filename:
        return f"attachment; filename*=utf-8''{quoted}"
    return f'attachment; filename="{filename}"'


# =============================================================================
# Upload
# =============================================================================

@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload PDF",
    description="Upload a single PDF in the multipart field 'file'",
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)
async def upload_file(
    file: Optional[UploadFile] = File(default=None),
    settings: Settings = Depends(get_settings),
    storage: LocalFileStorage = Depends(get_storage),
    _context: dict = Depends(setup_request_context)
) -> UploadResponse:
    """
    Upload a PDF.

    At most max_upload_bytes + 1 bytes of the part are read, which is enough
    to tell an oversized file apart without buffering all of it.
    """
    if file is None:
        file_operations.inc(operation='upload', status='rejected')
        raise InvalidArgument("Missing file field")

    max_bytes = settings.storage.max_upload_bytes
    try:
        buffer = await file.read(max_bytes + 1)
    finally:
        await file.close()

    try:
        upload = validate_upload(
            buffer,
            declared_content_type=file.content_type,
            declared_filename=file.filename,
            max_size_bytes=max_bytes,
        )
        stored = await storage.store(upload)
    except FileServiceError as e:
        file_operations.inc(operation='upload', status=_outcome(e))
        raise

    file_operations.inc(operation='upload', status='success')
    upload_sizes.observe(stored.size_bytes)
    logger.info(
        "Uploaded file",
        stored_name=stored.stored_name,
        original_name=stored.original_name,
        size_bytes=stored.size_bytes,
    )
    return UploadResponse.from_stored(stored)


# =============================================================================
# Download
# =============================================================================

async def _open_download(name: Optional[str], storage: LocalFileStorage) -> StreamingResponse:
    if name is None or not name.strip():
        file_operations.inc(operation='download', status='rejected')
        raise InvalidArgument("Query parameter 'name' is required")
    # Filesystems cap names in bytes, not characters
    if len(name.encode("utf-8", "surrogatepass")) > MAX_NAME_LENGTH:
        file_operations.inc(operation='download', status='rejected')
        raise InvalidArgument("File name is too long")

    try:
        stream: ByteStream = await storage.retrieve(name)
    except FileServiceError as e:
        file_operations.inc(operation='download', status=_outcome(e))
        raise

    file_operations.inc(operation='download', status='success')
    logger.info("Serving file", stored_name=stream.name, size_bytes=stream.size_bytes)

    return StreamingResponse(
        stream,
        media_type=PDF_MEDIA_TYPE,
        headers={
            "Content-Disposition": _content_disposition(stream.name),
            "Content-Length": str(stream.size_bytes),
            "Cache-Control": "no-store",
        }
    )


@router.get(
    "/download",
    summary="Download PDF",
    description="Stream a stored PDF by its stored name",
    response_class=StreamingResponse,
    responses={
        200: {"content": {PDF_MEDIA_TYPE: {}}},
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    }
)
async def download_file(
    name: Optional[str] = Query(default=None, description="Stored name returned by /upload"),
    storage: LocalFileStorage = Depends(get_storage),
    _context: dict = Depends(setup_request_context)
) -> StreamingResponse:
    return await _open_download(name, storage)


@router.get(
    "/download/{name:path}",
    summary="Download PDF by path",
    response_class=StreamingResponse,
    responses={
        200: {"content": {PDF_MEDIA_TYPE: {}}},
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    }
)
async def download_file_by_path(
    name: str,
    storage: LocalFileStorage = Depends(get_storage),
    _context: dict = Depends(setup_request_context)
) -> StreamingResponse:
    return await _open_download(name, storage)


# =============================================================================
# Listing
# =============================================================================

@router.get(
    "/files",
    response_model=List[FileEntry],
    summary="List files",
    description="List stored files ordered by stored name"
)
def list_files(
    storage: LocalFileStorage = Depends(get_storage),
    _context: dict = Depends(setup_request_context)
) -> List[FileEntry]:
    # Plain def: FastAPI runs it in the threadpool, so the scan never blocks the loop
    try:
        entries = [FileEntry.from_entry(entry) for entry in storage.list_files()]
    except OSError as e:
        file_operations.inc(operation='list', status='error')
        raise StorageIOError(f"Failed to list storage root: {e}") from e

    file_operations.inc(operation='list', status='success')
    return entries
