"""Unit tests for the CLI: command registration, exit codes and wiring."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from s3deploy.cli._common import exit_code_for
from s3deploy.cli.app import app
from s3deploy.cli.commands import check as check_command
from s3deploy.cli.commands import publish as publish_command
from s3deploy.cli.commands.sync import build_filters
from s3deploy.core import keys
from s3deploy.core.archiver import ArchiveError
from s3deploy.core.publisher import FilterKind
from s3deploy.core.resolver import ConfigurationError, default_tag_name
from s3deploy.models.outcomes import PublishReport, PublishStatus

runner = CliRunner()

COMMIT = "0123456789abcdef0123456789abcdef01234567"
HASH20 = "a1b2c3d4e5f6a7b8c9d0"


@pytest.fixture
def ci_env(monkeypatch, build_dir, tmp_path):
    """A minimal, valid CI environment pointing at the test build dir."""
    monkeypatch.setenv("TRAVIS_REPO_SLUG", "acme/widget")
    monkeypatch.setenv("TRAVIS_COMMIT", COMMIT)
    monkeypatch.setenv("TRAVIS_BRANCH", "feature-x")
    monkeypatch.setenv("TRAVIS_BUILD_NUMBER", "7")
    monkeypatch.setenv("TRAVIS_BUILD_DIR", str(build_dir))
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIDEXAMPLE")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "wJalrXUtnFEMI")
    monkeypatch.setenv("TARBALL_TARGET_PATH", str(tmp_path / "out" / "widget.tar.gz"))
    monkeypatch.setenv("S3D_CACHE_DIR", str(tmp_path / "cache"))
    return build_dir


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("publish", "check", "sync", "verify-fingerprints", "notify", "metadata"):
            assert name in result.output

    @pytest.mark.parametrize(
        "command", ["publish", "check", "sync", "verify-fingerprints", "notify", "metadata"]
    )
    def test_command_help(self, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


class TestExitCodes:
    def test_archive_error_keeps_status(self):
        assert exit_code_for(ArchiveError("tar failed", returncode=2)) == 2

    def test_other_errors_exit_one(self):
        assert exit_code_for(ConfigurationError("missing")) == 1


class TestPublishCommand:
    def test_missing_access_key_exits_one(self, ci_env, monkeypatch):
        monkeypatch.delenv("AWS_ACCESS_KEY_ID")
        factory = MagicMock()
        monkeypatch.setattr(publish_command, "ObjectStore", factory)
        result = runner.invoke(app, ["publish"])
        assert result.exit_code == 1
        assert "AWS_ACCESS_KEY_ID" in result.output
        factory.from_credentials.assert_not_called()

    def test_publishes_through_store(self, ci_env, monkeypatch, store):
        factory = MagicMock()
        factory.from_credentials.return_value = store
        monkeypatch.setattr(publish_command, "ObjectStore", factory)

        result = runner.invoke(app, ["publish", "--no-notify", "--exclude", "node_modules"])

        assert result.exit_code == 0, result.output
        assert len(store.puts) == 1
        assert store.puts[0].key.startswith("widget/feature-x/")
        assert store.puts[0].key.endswith(f"{COMMIT}.tar.gz")
        assert "published" in result.output

    def test_upload_failure_exits_one(self, ci_env, monkeypatch, store):
        store.fail_puts = True
        factory = MagicMock()
        factory.from_credentials.return_value = store
        monkeypatch.setattr(publish_command, "ObjectStore", factory)

        result = runner.invoke(app, ["publish", "--no-notify"])

        assert result.exit_code == 1

    def test_single_clock_reading(self, ci_env, monkeypatch, store):
        calls = []

        class RecordingPublisher:
            def __init__(self, config, store, **kwargs):
                self.config = config
                calls.append((config, kwargs))

            def run(self, now):
                calls.append(now)
                return PublishReport(
                    status=PublishStatus.PUBLISHED,
                    context=self.config.context,
                    primary=self.config.primary,
                )

        factory = MagicMock()
        factory.from_credentials.return_value = store
        monkeypatch.setattr(publish_command, "ObjectStore", factory)
        monkeypatch.setattr(publish_command, "BuildPublisher", RecordingPublisher)

        result = runner.invoke(app, ["publish", "--no-notify", "--message", "shipped"])

        assert result.exit_code == 0, result.output
        (config, kwargs), recorded_now = calls
        assert config.context.tag_name == default_tag_name("feature-x", recorded_now)
        assert keys.month_path(recorded_now) in config.primary.key
        assert kwargs["message"] == "shipped"
        assert "hints" not in kwargs


class TestCheckCommand:
    def test_pull_request_queries_global_key_only(self, ci_env, monkeypatch, store):
        monkeypatch.setenv("TRAVIS_PULL_REQUEST", "17")
        factory = MagicMock()
        factory.from_credentials.return_value = store
        monkeypatch.setattr(check_command, "ObjectStore", factory)

        result = runner.invoke(app, ["check", "--no-copy"])

        assert result.exit_code == 0, result.output
        assert "not built yet" in result.output
        assert [loc.key for loc in store.heads] == ["widget/_global_/pr-17.tar.gz"]


class TestFingerprintCommand:
    def test_clean_directory(self, tmp_path):
        (tmp_path / f"app.{HASH20}.js").write_text("x")
        result = runner.invoke(app, ["verify-fingerprints", str(tmp_path)])
        assert result.exit_code == 0

    def test_offenders_exit_one(self, tmp_path):
        (tmp_path / "app.js").write_text("x")
        result = runner.invoke(app, ["verify-fingerprints", str(tmp_path)])
        assert result.exit_code == 1
        assert "app.js" in result.output

    def test_missing_directory(self, tmp_path):
        result = runner.invoke(app, ["verify-fingerprints", str(tmp_path / "nope")])
        assert result.exit_code == 1


class TestMetadataCommand:
    def test_writes_record(self, ci_env):
        result = runner.invoke(app, ["metadata"])
        assert result.exit_code == 0, result.output
        data = json.loads((ci_env / ".s3d").read_text())
        assert data["revision"] == COMMIT
        assert data["build_number"] == "7"


class TestNotifyCommand:
    def test_no_channel_still_succeeds(self, ci_env):
        result = runner.invoke(app, ["notify"])
        assert result.exit_code == 0, result.output
        assert "skipped" in result.output


class TestSyncCommand:
    def test_filters_excludes_before_includes(self):
        filters = build_filters(["*.map"], ["keep.map"])
        assert [f.kind for f in filters] == [FilterKind.EXCLUDE, FilterKind.INCLUDE]

    def test_pull_request_skips(self, ci_env, monkeypatch, tmp_path):
        monkeypatch.setenv("TRAVIS_PULL_REQUEST", "12")
        result = runner.invoke(app, ["sync", str(tmp_path), "docs"])
        assert result.exit_code == 0, result.output
        assert "skipped" in result.output
