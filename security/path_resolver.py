"""
Path Resolver - Security Layer

Confines untrusted file names to the storage root.

@.architecture
Incoming: data/storage/local.py, api/endpoints/files.py --- {Path storage_root, str candidate_name}
Processing: resolve_storage_path(), final_segment() --- {3 jobs: segment_extraction, canonicalization, containment_check}
Outgoing: data/storage/local.py --- {absolute Path that is a direct child of storage_root, raises PathTraversalRejected}
"""

import os
import re
from pathlib import Path
from typing import Union

from core.errors import PathTraversalRejected

# Both separators are stripped regardless of platform.
_SEPARATORS = re.compile(r"[\\/]")


def final_segment(name: str) -> str:
    """Return the last path segment of ``name`` ('' if it ends in a separator)."""
    return _SEPARATORS.split(name)[-1]


def resolve_storage_path(storage_root: Union[str, Path], candidate_name: str) -> Path:
    """
    Resolve an untrusted file name to an absolute path inside ``storage_root``.

    Only the final path segment of ``candidate_name`` is used. The joined path
    is canonicalized (symlinks, ``.`` and ``..`` resolved, target need not
    exist) and must be a direct child of the canonical root.

    Args:
        storage_root: Directory all files must live in
        candidate_name: Untrusted name from a request

    Returns:
        Canonical absolute path of the file

    Raises:
        PathTraversalRejected: If the name is unusable or escapes the root
    """
    if not isinstance(candidate_name, str):
        raise PathTraversalRejected(f"Expected str name, got {type(candidate_name).__name__}")

    if "\x00" in candidate_name:
        raise PathTraversalRejected("Null byte in file name")

    segment = final_segment(candidate_name)
    if segment in ("", ".", ".."):
        raise PathTraversalRejected(f"Unusable file name segment: {segment!r}")

    root = os.path.realpath(os.fspath(storage_root))
    resolved = os.path.realpath(os.path.join(root, segment))

    prefix = root if root.endswith(os.sep) else root + os.sep
    if not resolved.startswith(prefix) or os.path.dirname(resolved) != root:
        raise PathTraversalRejected(f"Name {candidate_name!r} resolves outside storage root")

    return Path(resolved)
