"""
Unit Tests: Path Resolver

Untrusted names must resolve to a direct child of the storage root or be
rejected.
"""

import os
from pathlib import Path

import pytest

from core.errors import PathTraversalRejected
from security.path_resolver import final_segment, resolve_storage_path


class TestFinalSegment:

    @pytest.mark.unit
    @pytest.mark.parametrize("name,expected", [
        ("report.pdf", "report.pdf"),
        ("a/b/report.pdf", "report.pdf"),
        ("a\\b\\report.pdf", "report.pdf"),
        ("/etc/passwd", "passwd"),
        ("dir/", ""),
    ])
    def test_final_segment(self, name, expected):
        assert final_segment(name) == expected


class TestResolveStoragePath:
    """Test containment of resolved paths."""

    @pytest.mark.unit
    def test_plain_name_resolves_inside_root(self, temp_storage_dir: Path):
        path = resolve_storage_path(temp_storage_dir, "file.pdf")

        root = os.path.realpath(temp_storage_dir)
        assert str(path) == os.path.join(root, "file.pdf")
        assert path.is_absolute()

    @pytest.mark.unit
    @pytest.mark.parametrize("name", [
        "../../etc/passwd",
        "/etc/passwd",
        "..\\..\\windows\\win.ini",
        "C:\\Windows\\system32\\drivers\\etc\\hosts",
        "nested/../../../secret.pdf",
        "%2e%2e%2fsecret.pdf",
        "..%2f..%2fetc%2fpasswd",
    ])
    def test_hostile_names_never_escape(self, temp_storage_dir: Path, name: str):
        root = os.path.realpath(temp_storage_dir)
        path = resolve_storage_path(temp_storage_dir, name)

        assert os.path.dirname(str(path)) == root
        assert str(path).startswith(root + os.sep)

    @pytest.mark.unit
    def test_only_final_segment_is_kept(self, temp_storage_dir: Path):
        path = resolve_storage_path(temp_storage_dir, "../../etc/passwd")
        assert path.name == "passwd"

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["", ".", "..", "a/..", "a/", "../", "\\"])
    def test_unusable_segments_rejected(self, temp_storage_dir: Path, name: str):
        with pytest.raises(PathTraversalRejected):
            resolve_storage_path(temp_storage_dir, name)

    @pytest.mark.unit
    def test_null_byte_rejected(self, temp_storage_dir: Path):
        with pytest.raises(PathTraversalRejected):
            resolve_storage_path(temp_storage_dir, "file.pdf\x00.txt")

    @pytest.mark.unit
    def test_non_string_rejected(self, temp_storage_dir: Path):
        with pytest.raises(PathTraversalRejected):
            resolve_storage_path(temp_storage_dir, b"file.pdf")

    @pytest.mark.unit
    def test_symlink_escaping_root_rejected(self, tmp_path: Path, temp_storage_dir: Path):
        outside = tmp_path / "outside.pdf"
        outside.write_bytes(b"%PDF-secret")
        (temp_storage_dir / "link.pdf").symlink_to(outside)

        with pytest.raises(PathTraversalRejected):
            resolve_storage_path(temp_storage_dir, "link.pdf")

    @pytest.mark.unit
    def test_symlink_to_root_itself_rejected(self, temp_storage_dir: Path):
        (temp_storage_dir / "self").symlink_to(temp_storage_dir)

        with pytest.raises(PathTraversalRejected):
            resolve_storage_path(temp_storage_dir, "self")

    @pytest.mark.unit
    def test_symlinked_root_is_canonicalized(self, tmp_path: Path, temp_storage_dir: Path):
        alias = tmp_path / "alias"
        alias.symlink_to(temp_storage_dir)

        path = resolve_storage_path(alias, "file.pdf")

        assert os.path.dirname(str(path)) == os.path.realpath(temp_storage_dir)

    @pytest.mark.unit
    def test_rejection_message_is_not_public(self, temp_storage_dir: Path):
        with pytest.raises(PathTraversalRejected) as exc_info:
            resolve_storage_path(temp_storage_dir, "..")

        assert exc_info.value.status_code == 404
        assert exc_info.value.public_message == "File not found"
