"""Shared test fixtures for s3deploy."""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from s3deploy.config import DeploySettings
from s3deploy.core.object_store import (
    ExistenceStatus,
    HeadResult,
    ObjectStoreError,
)
from s3deploy.core.resolver import resolve
from s3deploy.models.config import ResolvedConfig
from s3deploy.models.targets import TargetLocation

_ENV_PREFIXES = ("TRAVIS_", "AWS_", "GIT_", "TARBALL_", "S3D_")

COMMIT = "0123456789abcdef0123456789abcdef01234567"
NOW = datetime(2024, 3, 15, 12, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate every test from CI variables set in the real environment."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES) or name == "TAG_ON":
            monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# In-memory object store
# ---------------------------------------------------------------------------


class FakeObjectStore:
    """Dict-backed stand-in for ``ObjectStore`` that records every call."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.heads: list[TargetLocation] = []
        self.puts: list[TargetLocation] = []
        self.copies: list[tuple[TargetLocation, TargetLocation]] = []
        self.failing_heads: set[tuple[str, str]] = set()
        self.failing_copies: set[tuple[str, str]] = set()
        self.fail_puts = False

    def add(
        self,
        location: TargetLocation,
        metadata: dict[str, str] | None = None,
        body: bytes = b"archive",
    ) -> None:
        self.objects[(location.bucket, location.key)] = {
            "metadata": dict(metadata or {}),
            "body": body,
            "etag": f"etag-{len(self.objects)}",
        }

    def has(self, location: TargetLocation) -> bool:
        return (location.bucket, location.key) in self.objects

    def head(self, location: TargetLocation) -> HeadResult:
        self.heads.append(location)
        ident = (location.bucket, location.key)
        if ident in self.failing_heads:
            return HeadResult(location=location, status=ExistenceStatus.FAILED, error="boom")
        obj = self.objects.get(ident)
        if obj is None:
            return HeadResult(location=location, status=ExistenceStatus.ABSENT)
        return HeadResult(
            location=location,
            status=ExistenceStatus.FOUND,
            metadata=obj["metadata"],
            etag=obj["etag"],
            size_bytes=len(obj["body"]),
        )

    def put_file(
        self,
        path: Path,
        location: TargetLocation,
        metadata: dict[str, str] | None = None,
    ) -> str:
        if self.fail_puts:
            raise ObjectStoreError(f"Upload of {path} to {location} failed: denied")
        self.puts.append(location)
        self.add(location, metadata, Path(path).read_bytes())
        return self.objects[(location.bucket, location.key)]["etag"]

    def copy(self, source: TargetLocation, destination: TargetLocation) -> str:
        if (destination.bucket, destination.key) in self.failing_copies:
            raise ObjectStoreError(f"Copy {source} -> {destination} failed: denied")
        self.copies.append((source, destination))
        obj = self.objects[(source.bucket, source.key)]
        self.objects[(destination.bucket, destination.key)] = dict(obj)
        return obj["etag"]


@pytest.fixture
def store() -> FakeObjectStore:
    """Provide an empty in-memory object store."""
    return FakeObjectStore()


# ---------------------------------------------------------------------------
# Configuration factories
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    """A fixed resolution time (March 2024)."""
    return NOW


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    """A small build directory with a VCS folder and some output."""
    root = tmp_path / "build"
    (root / ".git").mkdir(parents=True)
    (root / ".git" / "HEAD").write_text("ref: refs/heads/master\n")
    (root / "app.py").write_text("print('hello')\n")
    (root / "node_modules" / "left-pad").mkdir(parents=True)
    (root / "node_modules" / "left-pad" / "index.js").write_text("module.exports = 1\n")
    return root


@pytest.fixture
def make_settings() -> Callable[..., DeploySettings]:
    """Factory fixture: DeploySettings with a valid CI identity."""

    def _factory(**overrides: Any) -> DeploySettings:
        values: dict[str, Any] = {
            "repo_slug": "acme/widget",
            "commit": COMMIT,
            "branch": "feature-x",
            "build_number": "42",
            "pull_request": "false",
            "access_key_id": "AKIDEXAMPLE",
            "secret_access_key": "wJalrXUtnFEMI",
        }
        values.update(overrides)
        return DeploySettings(**values)

    return _factory


@pytest.fixture
def make_config(
    make_settings: Callable[..., DeploySettings], tmp_path: Path
) -> Callable[..., ResolvedConfig]:
    """Factory fixture: a ResolvedConfig resolved at ``NOW``."""

    def _factory(**overrides: Any) -> ResolvedConfig:
        overrides.setdefault("build_dir", tmp_path / "build")
        overrides.setdefault("tarball_target_path", str(tmp_path / "out" / "widget.tar.gz"))
        overrides.setdefault("cache_dir", tmp_path / "cache")
        return resolve(make_settings(**overrides), now=NOW)

    return _factory
