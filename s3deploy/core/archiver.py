"""Archiver: tarball the build directory and checksum the result.

The archiver command line is built as a list of discrete arguments and run
without a shell, so exclusion patterns are passed to ``tar`` verbatim.
Each caller-supplied pattern maps to exactly one ``--exclude=`` rule.
"""

from __future__ import annotations

import contextlib
import logging
import shutil
import subprocess
import uuid
from collections.abc import Iterator
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from s3deploy.core.hasher import sha256_file
from s3deploy.models.artifacts import Artifact

logger = logging.getLogger(__name__)


class ArchiveError(RuntimeError):
    """Raised when the archiver or checksum step fails.

    ``returncode`` carries the archiver's exit status so the CLI can
    propagate it.
    """

    def __init__(self, message: str, returncode: int = 1) -> None:
        super().__init__(message)
        self.returncode = returncode or 1


class ArchiveSpec(BaseModel):
    """What to archive and where to write it."""

    model_config = ConfigDict(frozen=True)

    build_dir: Path
    target: Path
    exclude_patterns: list[str] = []
    exclude_vcs: bool = True
    tar_binary: str = "tar"


def build_tar_args(spec: ArchiveSpec) -> list[str]:
    """Return the archiver argument list for *spec*.

    >>> build_tar_args(ArchiveSpec(build_dir=Path("/b"), target=Path("/tmp/x.tar.gz"),
    ...                            exclude_patterns=["node_modules"]))
    ['tar', '--exclude-vcs', '--exclude=node_modules', '-c', '-z', '-f', '/tmp/x.tar.gz', '-C', '/b', '.']
    """
    args = [spec.tar_binary]
    if spec.exclude_vcs:
        args.append("--exclude-vcs")
    for pattern in spec.exclude_patterns:
        args.append(f"--exclude={pattern}")

    # An archive written inside the tree it is archiving must not include itself.
    try:
        inner = spec.target.resolve().relative_to(spec.build_dir.resolve())
    except ValueError:
        inner = None
    if inner is not None:
        args.append(f"--exclude=./{inner.as_posix()}")

    args.extend(["-c", "-z", "-f", str(spec.target), "-C", str(spec.build_dir), "."])
    return args


def create_archive(spec: ArchiveSpec) -> Artifact:
    """Run the archiver and checksum its output.

    Raises
    ------
    ArchiveError
        If the archiver is missing, exits non-zero, or produces no file.
    """
    if not spec.build_dir.is_dir():
        raise ArchiveError(f"Build directory {spec.build_dir} does not exist")
    spec.target.parent.mkdir(parents=True, exist_ok=True)

    args = build_tar_args(spec)
    logger.info("Archiving %s -> %s", spec.build_dir, spec.target)
    logger.debug("Archiver command: %s", args)
    try:
        result = subprocess.run(args, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise ArchiveError(f"Could not run {spec.tar_binary}: {exc}", returncode=127) from exc

    if result.returncode != 0:
        raise ArchiveError(
            f"{spec.tar_binary} exited {result.returncode}: {result.stderr.strip()}",
            returncode=result.returncode,
        )
    if not spec.target.is_file():
        raise ArchiveError(f"Archiver produced no file at {spec.target}")

    try:
        checksum = sha256_file(spec.target)
    except OSError as exc:
        raise ArchiveError(f"Checksum of {spec.target} failed: {exc}") from exc

    artifact = Artifact(
        path=spec.target,
        checksum=checksum,
        size_bytes=spec.target.stat().st_size,
    )
    logger.info("Archive %s sha256=%s (%d bytes)", spec.target, checksum, artifact.size_bytes)
    return artifact


@contextlib.contextmanager
def stash(build_dir: Path, paths: list[str], cache_dir: Path) -> Iterator[list[Path]]:
    """Temporarily move *paths* out of the build directory.

    Each relative path is moved under a fresh directory in *cache_dir* and
    moved back when the block exits, even on error. Missing paths are
    skipped. Yields the list of paths that were actually moved.
    """
    holding = Path(cache_dir) / f"stash-{uuid.uuid4().hex[:8]}"
    moved: list[tuple[Path, Path]] = []
    try:
        for rel in paths:
            source = Path(build_dir) / rel
            if not source.exists():
                logger.warning("Stash: %s does not exist, skipping", source)
                continue
            dest = holding / rel
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source), str(dest))
            moved.append((source, dest))
            logger.debug("Stashed %s -> %s", source, dest)
        yield [source for source, _ in moved]
    finally:
        for source, dest in reversed(moved):
            source.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(dest), str(source))
        if holding.exists():
            shutil.rmtree(holding, ignore_errors=True)
