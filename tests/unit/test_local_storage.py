"""
Unit Tests: Local File Storage

Tests for atomic store, streaming retrieve and directory listing.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from core.errors import NotFound, PathTraversalRejected, StorageIOError
from data.storage import LocalFileStorage, StoredFileEntry
from security.upload_validator import PDF_MEDIA_TYPE, ValidatedUpload, validate_upload


def make_upload(content: bytes, original_name: str = "report.pdf") -> ValidatedUpload:
    return validate_upload(content, PDF_MEDIA_TYPE, original_name, max_size_bytes=1024 * 1024)


# =============================================================================
# Initialization
# =============================================================================

class TestStorageRoot:

    @pytest.mark.unit
    def test_missing_root_is_created(self, tmp_path: Path):
        storage = LocalFileStorage(tmp_path / "a" / "b")

        assert storage.base_dir.is_dir()
        assert storage.base_dir.is_absolute()

    @pytest.mark.unit
    def test_root_is_canonical(self, tmp_path: Path, temp_storage_dir: Path):
        alias = tmp_path / "alias"
        alias.symlink_to(temp_storage_dir)

        storage = LocalFileStorage(alias)

        assert str(storage.base_dir) == os.path.realpath(temp_storage_dir)


# =============================================================================
# Store / Retrieve
# =============================================================================

class TestStoreAndRetrieve:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_round_trip_is_byte_identical(self, storage: LocalFileStorage, pdf_bytes):
        content = pdf_bytes(200 * 1024)
        upload = make_upload(content)

        stored = await storage.store(upload)
        stream = await storage.retrieve(stored.stored_name)

        assert stored.stored_name == upload.stored_name
        assert stored.original_name == "report.pdf"
        assert stored.size_bytes == len(content)
        assert stored.content_type == PDF_MEDIA_TYPE
        assert stream.size_bytes == len(content)
        assert await stream.read_all() == content

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stream_yields_chunks(self, temp_storage_dir: Path, pdf_bytes):
        storage = LocalFileStorage(temp_storage_dir, chunk_size=1000)
        stored = await storage.store(make_upload(pdf_bytes(2500)))

        stream = await storage.retrieve(stored.stored_name)
        chunks = [chunk async for chunk in stream]

        assert [len(chunk) for chunk in chunks] == [1000, 1000, 500]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_store_leaves_no_temporary_files(self, storage: LocalFileStorage, pdf_bytes):
        stored = await storage.store(make_upload(pdf_bytes(100)))

        assert sorted(os.listdir(storage.base_dir)) == [stored.stored_name]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_collision_fails_closed(self, storage: LocalFileStorage, pdf_bytes):
        upload = make_upload(pdf_bytes(100))
        existing = storage.base_dir / upload.stored_name
        existing.write_bytes(b"%PDF-original")

        with pytest.raises(StorageIOError):
            await storage.store(upload)

        assert existing.read_bytes() == b"%PDF-original"
        assert os.listdir(storage.base_dir) == [upload.stored_name]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_write_failure_becomes_storage_error(self, storage: LocalFileStorage, pdf_bytes):
        with patch("data.storage.local.aiofiles.open", side_effect=PermissionError("denied")):
            with pytest.raises(StorageIOError):
                await storage.store(make_upload(pdf_bytes(100)))

        assert os.listdir(storage.base_dir) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retrieve_missing_file(self, storage: LocalFileStorage):
        with pytest.raises(NotFound):
            await storage.retrieve("0b4e28ba-2fa1-4d3b-a3f5-ef19b5a7633b.pdf")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retrieve_directory_is_not_found(self, storage: LocalFileStorage):
        (storage.base_dir / "folder").mkdir()

        with pytest.raises(NotFound):
            await storage.retrieve("folder")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retrieve_name_too_long_is_not_found(self, storage: LocalFileStorage):
        # 200 characters, 404 bytes: over the filesystem's per-name limit
        with pytest.raises(NotFound):
            await storage.retrieve("é" * 200 + ".pdf")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retrieve_through_file_is_not_found(self, storage: LocalFileStorage):
        (storage.base_dir / "plain.pdf").write_bytes(b"%PDF-1")

        with patch("data.storage.local.aiofiles.os.stat", side_effect=NotADirectoryError(20, "Not a directory")):
            with pytest.raises(NotFound):
                await storage.retrieve("plain.pdf")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retrieve_permission_error_is_storage_error(self, storage: LocalFileStorage):
        (storage.base_dir / "locked.pdf").write_bytes(b"%PDF-1")

        with patch("data.storage.local.aiofiles.open", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(StorageIOError):
                await storage.retrieve("locked.pdf")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retrieve_only_reads_inside_root(self, tmp_path: Path, storage: LocalFileStorage):
        (tmp_path / "secret.pdf").write_bytes(b"%PDF-secret")

        with pytest.raises(NotFound):
            await storage.retrieve("../secret.pdf")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_retrieve_symlink_escape_rejected(self, tmp_path: Path, storage: LocalFileStorage):
        outside = tmp_path / "secret.pdf"
        outside.write_bytes(b"%PDF-secret")
        (storage.base_dir / "link.pdf").symlink_to(outside)

        with pytest.raises(PathTraversalRejected):
            await storage.retrieve("link.pdf")


# =============================================================================
# Listing
# =============================================================================

class TestListing:

    @pytest.mark.unit
    def test_empty_root(self, storage: LocalFileStorage):
        assert list(storage.list_files()) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_lists_stored_files_sorted(self, storage: LocalFileStorage, pdf_bytes):
        stored = [await storage.store(make_upload(pdf_bytes(100 + i))) for i in range(5)]

        entries = list(storage.list_files())

        expected = sorted(
            (StoredFileEntry(s.stored_name, s.size_bytes) for s in stored),
            key=lambda entry: entry.stored_name
        )
        assert entries == expected

    @pytest.mark.unit
    def test_listing_is_restartable(self, storage: LocalFileStorage):
        listing = storage.list_files()
        (storage.base_dir / "b.pdf").write_bytes(b"%PDF-b")

        first = list(listing)
        (storage.base_dir / "a.pdf").write_bytes(b"%PDF-aa")
        second = list(listing)

        assert [entry.stored_name for entry in first] == ["b.pdf"]
        assert [entry.stored_name for entry in second] == ["a.pdf", "b.pdf"]
        assert second[0].size_bytes == 7

    @pytest.mark.unit
    def test_skips_hidden_directories_and_symlinks(self, tmp_path: Path, storage: LocalFileStorage):
        (storage.base_dir / "visible.pdf").write_bytes(b"%PDF-1")
        (storage.base_dir / ".upload.part").write_bytes(b"%PDF-partial")
        (storage.base_dir / "nested").mkdir()
        (storage.base_dir / "nested" / "inner.pdf").write_bytes(b"%PDF-2")
        outside = tmp_path / "outside.pdf"
        outside.write_bytes(b"%PDF-3")
        (storage.base_dir / "link.pdf").symlink_to(outside)

        names = [entry.stored_name for entry in storage.list_files()]

        assert names == ["visible.pdf"]

    @pytest.mark.unit
    def test_storage_stats(self, storage: LocalFileStorage):
        (storage.base_dir / "a.pdf").write_bytes(b"%PDF-a")
        (storage.base_dir / "b.pdf").write_bytes(b"%PDF-bbb")

        assert storage.get_storage_stats() == {"total_files": 2, "total_size_bytes": 14}
