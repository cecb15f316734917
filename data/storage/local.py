"""
Local File Storage - File system storage management

@.architecture
Incoming: api/endpoints/files.py, api/endpoints/health.py, Local filesystem (base_dir) --- {ValidatedUpload, str stored_name, listing and stats requests}
Processing: store(), retrieve(), list_files(), get_storage_stats(), _resolve(), _discard() --- {5 jobs: atomic_write, path_validation, streaming_read, directory_listing, statistics_collection}
Outgoing: Local filesystem (aiofiles open/link/unlink, os.scandir), api/endpoints/files.py --- {StoredFile, ByteStream, StoredFileListing, storage stats dict}

Provides flat PDF storage with:
- Atomic writes (temporary name + hard link, never overwrites)
- Safe path handling through the path resolver
- Chunked async reads
- Deterministic, restartable listings

Directory Structure:
    uploads/
    ├── 1b4e28ba-2fa1-4d3b-a3f5-ef19b5a7633b.pdf
    ├── 6fa459ea-ee8a-4ca4-894e-db77e160355e.pdf
    └── .<stored_name>.<token>.part    # in-flight upload, hidden
"""

import errno
import logging
import os
import secrets
import stat
from pathlib import Path
from typing import AsyncIterator, Iterator, List, Union

import aiofiles
import aiofiles.os

from core.errors import NotFound, StorageIOError
from data.storage.models import StoredFile, StoredFileEntry
from security.path_resolver import resolve_storage_path
from security.upload_validator import ValidatedUpload

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
TEMP_SUFFIX = ".part"

# stat/open failures that mean "no such stored file" rather than an I/O fault
MISSING_FILE_ERRNOS = frozenset({errno.ENOENT, errno.ENOTDIR, errno.ENAMETOOLONG, errno.ELOOP})


class ByteStream:
    """
    Async iterator over an open file's contents.

    The file is opened before the stream is handed out, so "not found" is
    known before any response headers are sent. The handle is closed when
    iteration finishes or fails.
    """

    def __init__(self, handle, name: str, size_bytes: int, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._handle = handle
        self.name = name
        self.size_bytes = size_bytes
        self.chunk_size = chunk_size
        self._closed = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await self._handle.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await self.aclose()

    async def read_all(self) -> bytes:
        """Drain the stream into memory."""
        return b"".join([chunk async for chunk in self])

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await self._handle.close()


class StoredFileListing:
    """
    Lazy view of the files directly under the storage root.

    Each iteration rescans the directory, so the listing can be walked any
    number of times. Entries come out ordered by stored name; files that
    vanish between the scan and the stat are skipped.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir

    def _scan(self) -> List[os.DirEntry]:
        with os.scandir(self.base_dir) as entries:
            visible = [
                entry for entry in entries
                if not entry.name.startswith(".") and entry.is_file(follow_symlinks=False)
            ]
        visible.sort(key=lambda entry: entry.name)
        return visible

    def __iter__(self) -> Iterator[StoredFileEntry]:
        for entry in self._scan():
            try:
                size_bytes = entry.stat(follow_symlinks=False).st_size
            except FileNotFoundError:
                continue
            yield StoredFileEntry(stored_name=entry.name, size_bytes=size_bytes)


class LocalFileStorage:
    """
    Flat local storage for validated PDF uploads.

    Features:
    - Every path goes through resolve_storage_path (no traversal)
    - Writes are atomic from a reader's perspective
    - Name collisions fail closed instead of overwriting
    """

    def __init__(self, base_dir: Union[str, Path], chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Initialize local file storage.

        Args:
            base_dir: Storage root (created if missing, resolved to absolute)
            chunk_size: Read size used by retrieve()
        """
        base = Path(base_dir).expanduser()
        base.mkdir(parents=True, exist_ok=True)
        self.base_dir = Path(os.path.realpath(base))
        self.chunk_size = chunk_size
        logger.debug(f"Storage root ready at {self.base_dir}")

    def _resolve(self, name: str) -> Path:
        return resolve_storage_path(self.base_dir, name)

    async def _discard(self, path: Path) -> None:
        try:
            await aiofiles.os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temporary file {path.name}: {e}")

    # =========================================================================
    # FILE OPERATIONS
    # =========================================================================

    async def store(self, upload: ValidatedUpload) -> StoredFile:
        """
        Persist a validated upload under its generated name.

        Args:
            upload: Output of validate_upload()

        Returns:
            StoredFile describing the persisted file

        Raises:
            PathTraversalRejected: If the stored name is unusable
            StorageIOError: If writing fails or the name already exists
        """
        final_path = self._resolve(upload.stored_name)
        temp_path = self._resolve(f".{upload.stored_name}.{secrets.token_hex(8)}{TEMP_SUFFIX}")

        try:
            async with aiofiles.open(temp_path, "xb") as f:
                await f.write(upload.content)
        except OSError as e:
            await self._discard(temp_path)
            logger.error(f"Failed to write {upload.stored_name}: {e}")
            raise StorageIOError(f"Failed to write {upload.stored_name}: {e}") from e

        try:
            # link() refuses to replace an existing name, unlike rename()
            await aiofiles.os.link(temp_path, final_path)
        except FileExistsError as e:
            logger.error(f"Stored name collision for {upload.stored_name}")
            raise StorageIOError(f"Stored name already exists: {upload.stored_name}") from e
        except OSError as e:
            logger.error(f"Failed to publish {upload.stored_name}: {e}")
            raise StorageIOError(f"Failed to publish {upload.stored_name}: {e}") from e
        finally:
            await self._discard(temp_path)

        logger.info(f"Stored file: {upload.stored_name} ({upload.size_bytes} bytes)")
        return StoredFile(
            stored_name=upload.stored_name,
            original_name=upload.original_name,
            size_bytes=upload.size_bytes,
            content_type=upload.content_type,
        )

    async def retrieve(self, stored_name: str) -> ByteStream:
        """
        Open a stored file for streaming.

        Args:
            stored_name: Untrusted name from the request

        Returns:
            ByteStream over the file's contents

        Raises:
            PathTraversalRejected: If the name escapes the storage root
            NotFound: If no regular file exists under that name
            StorageIOError: If the file exists but cannot be opened
        """
        path = self._resolve(stored_name)

        try:
            file_stat = await aiofiles.os.stat(path)
        except OSError as e:
            if e.errno in MISSING_FILE_ERRNOS:
                raise NotFound(f"No stored file named {path.name}") from e
            raise StorageIOError(f"Cannot stat {path.name}: {e}") from e

        if not stat.S_ISREG(file_stat.st_mode):
            raise NotFound(f"{path.name} is not a regular file")

        try:
            handle = await aiofiles.open(path, "rb")
        except OSError as e:
            if e.errno in MISSING_FILE_ERRNOS:
                raise NotFound(f"No stored file named {path.name}") from e
            raise StorageIOError(f"Cannot open {path.name}: {e}") from e

        logger.debug(f"Opened file: {path.name} ({file_stat.st_size} bytes)")
        return ByteStream(handle, name=path.name, size_bytes=file_stat.st_size, chunk_size=self.chunk_size)

    def list_files(self) -> StoredFileListing:
        """List stored files (lazy, restartable, ordered by stored name)."""
        return StoredFileListing(self.base_dir)

    # =========================================================================
    # STATISTICS
    # =========================================================================

    def get_storage_stats(self) -> dict:
        """
        Get storage statistics.

        Returns:
            Dict with file count and total size
        """
        total_files = 0
        total_size = 0
        for entry in self.list_files():
            total_files += 1
            total_size += entry.size_bytes

        return {
            "total_files": total_files,
            "total_size_bytes": total_size,
        }
