"""Fingerprint verification for cache-busted static assets.

Every published asset must carry a content hash in its file name: a run of
20 to 124 hex characters, optionally preceded by a name segment, followed
by an extension (``app.a1b2c3d4e5f6a7b8c9d0.js``). The asset manifest is
the one file allowed to break the rule.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_NAME = "manifest.json"

FINGERPRINT_PATTERN = re.compile(
    r"^(?:.*[._-])?[0-9a-fA-F]{20,124}(?:\.[A-Za-z0-9]+)+$"
)


class FingerprintError(RuntimeError):
    """Raised when files without a content hash in their name are found."""

    def __init__(self, offenders: list[str]) -> None:
        super().__init__(
            "Files without a fingerprinted name:\n"
            + "\n".join(f"  - {name}" for name in offenders)
        )
        self.offenders = offenders


def is_fingerprinted(file_name: str) -> bool:
    return FINGERPRINT_PATTERN.match(file_name) is not None


def find_unfingerprinted(
    directory: Path, manifest_name: str = DEFAULT_MANIFEST_NAME
) -> list[str]:
    """Relative paths of files under *directory* that break the naming rule."""
    root = Path(directory)
    offenders: list[str] = []
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        if path.name == manifest_name:
            continue
        if not is_fingerprinted(path.name):
            offenders.append(path.relative_to(root).as_posix())
    return offenders


def verify_fingerprints(
    directory: Path, manifest_name: str = DEFAULT_MANIFEST_NAME
) -> None:
    """Fail if any file in *directory* lacks a fingerprinted name.

    Raises
    ------
    FingerprintError
        Listing every offending file.
    FileNotFoundError
        If *directory* does not exist.
    """
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Asset directory not found: {root}")

    offenders = find_unfingerprinted(root, manifest_name)
    if offenders:
        for name in offenders:
            logger.error("Unfingerprinted asset: %s", name)
        raise FingerprintError(offenders)
    logger.info("All assets under %s are fingerprinted", root)
