"""Checksum helpers for archives and synced files.

Archive checksums are SHA-256 hex digests (64 characters), streamed so
large build archives never need to fit in memory.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024


def _file_digest(path: Path, algorithm: str) -> str:
    digest = hashlib.new(algorithm)
    with Path(path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def sha256_file(path: Path) -> str:
    """SHA-256 hex digest of a file's contents."""
    return _file_digest(path, "sha256")


def md5_file(path: Path) -> str:
    """MD5 hex digest of a file's contents.

    Matches the ETag the object store assigns to single-part uploads, which
    lets directory sync skip unchanged files.
    """
    return _file_digest(path, "md5")
