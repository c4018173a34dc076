"""Tests for the archiver."""

from __future__ import annotations

import hashlib
import tarfile
from pathlib import Path
from unittest.mock import patch

import pytest

from s3deploy.core.archiver import ArchiveError, ArchiveSpec, build_tar_args, create_archive, stash


def _members(archive: Path) -> set[str]:
    with tarfile.open(archive, "r:gz") as tar:
        return {name.removeprefix("./") for name in tar.getnames()}


class TestBuildTarArgs:
    def test_one_rule_per_pattern(self, tmp_path):
        spec = ArchiveSpec(
            build_dir=tmp_path / "b",
            target=tmp_path / "out.tar.gz",
            exclude_patterns=["node_modules", "*.log", "dir with space"],
        )
        args = build_tar_args(spec)
        assert args[0] == "tar"
        assert "--exclude-vcs" in args
        assert "--exclude=node_modules" in args
        assert "--exclude=*.log" in args
        assert "--exclude=dir with space" in args
        assert args[-5:] == ["-f", str(tmp_path / "out.tar.gz"), "-C", str(tmp_path / "b"), "."]

    def test_target_inside_build_dir_excluded(self, tmp_path):
        spec = ArchiveSpec(build_dir=tmp_path, target=tmp_path / "dist" / "x.tar.gz")
        assert "--exclude=./dist/x.tar.gz" in build_tar_args(spec)

    def test_vcs_exclusion_optional(self, tmp_path):
        spec = ArchiveSpec(build_dir=tmp_path / "b", target=tmp_path / "x.tar.gz", exclude_vcs=False)
        assert "--exclude-vcs" not in build_tar_args(spec)


class TestCreateArchive:
    def test_archive_contents_and_checksum(self, build_dir, tmp_path):
        target = tmp_path / "out" / "widget.tar.gz"
        artifact = create_archive(
            ArchiveSpec(build_dir=build_dir, target=target, exclude_patterns=["node_modules"])
        )
        names = _members(target)
        assert "app.py" in names
        assert not any(n.startswith(".git") for n in names)
        assert not any(n.startswith("node_modules") for n in names)
        assert artifact.path == target
        assert artifact.checksum == hashlib.sha256(target.read_bytes()).hexdigest()
        assert artifact.size_bytes == target.stat().st_size
        assert not artifact.uploaded

    def test_missing_build_dir(self, tmp_path):
        with pytest.raises(ArchiveError, match="does not exist"):
            create_archive(ArchiveSpec(build_dir=tmp_path / "nope", target=tmp_path / "x.tar.gz"))

    def test_nonzero_exit_propagates_status(self, build_dir, tmp_path):
        failed = type("Result", (), {"returncode": 2, "stderr": "tar: bad", "stdout": ""})()
        with patch("s3deploy.core.archiver.subprocess.run", return_value=failed):
            with pytest.raises(ArchiveError) as excinfo:
                create_archive(ArchiveSpec(build_dir=build_dir, target=tmp_path / "x.tar.gz"))
        assert excinfo.value.returncode == 2

    def test_missing_binary(self, build_dir, tmp_path):
        spec = ArchiveSpec(
            build_dir=build_dir, target=tmp_path / "x.tar.gz", tar_binary="no-such-tar-binary"
        )
        with pytest.raises(ArchiveError) as excinfo:
            create_archive(spec)
        assert excinfo.value.returncode == 127


class TestStash:
    def test_paths_moved_and_restored(self, build_dir, tmp_path):
        cache = tmp_path / "cache"
        with stash(build_dir, ["node_modules", "missing"], cache) as moved:
            assert moved == [build_dir / "node_modules"]
            assert not (build_dir / "node_modules").exists()
        assert (build_dir / "node_modules" / "left-pad" / "index.js").is_file()
        assert list(cache.iterdir()) == []

    def test_restored_on_error(self, build_dir, tmp_path):
        with pytest.raises(RuntimeError):
            with stash(build_dir, ["app.py"], tmp_path / "cache"):
                raise RuntimeError("archiver blew up")
        assert (build_dir / "app.py").is_file()

    def test_stashed_paths_left_out_of_archive(self, build_dir, tmp_path):
        target = tmp_path / "x.tar.gz"
        with stash(build_dir, ["node_modules"], tmp_path / "cache"):
            create_archive(ArchiveSpec(build_dir=build_dir, target=target))
        assert not any(n.startswith("node_modules") for n in _members(target))
