"""Tests for the append-only deployments audit log."""

from __future__ import annotations

from datetime import datetime, timezone

from s3deploy.core.audit_log import AuditLog
from s3deploy.models.audit import AuditRecord


def _record(revision: str, checksum: str, day: int = 1) -> AuditRecord:
    return AuditRecord(
        git_revision=revision,
        git_branch="master",
        git_repo_name="widget",
        git_repo_url="https://github.com/acme/widget",
        s3_bucket="og-deployments",
        s3_object_path=f"widget/master/2024/03/{revision}.tar.gz",
        s3_object_etag="etag",
        tarball_checksum=checksum,
        created=datetime(2024, 3, day, tzinfo=timezone.utc),
    )


class TestAuditLog:
    def test_record_and_get(self, tmp_path):
        log = AuditLog(tmp_path / "audit" / "deploys.db")
        entry = _record("a" * 40, "1" * 64)
        assert log.record(entry) is True
        assert log.get("a" * 40) == entry
        assert log.count() == 1

    def test_duplicate_revision_ignored(self, tmp_path):
        log = AuditLog(tmp_path / "deploys.db")
        log.record(_record("a" * 40, "1" * 64))
        assert log.record(_record("a" * 40, "2" * 64)) is False
        assert log.get("a" * 40).tarball_checksum == "1" * 64

    def test_duplicate_checksum_ignored(self, tmp_path):
        log = AuditLog(tmp_path / "deploys.db")
        log.record(_record("a" * 40, "1" * 64))
        assert log.record(_record("b" * 40, "1" * 64)) is False
        assert log.count() == 1

    def test_list_recent_newest_first(self, tmp_path):
        log = AuditLog(tmp_path / "deploys.db")
        log.record(_record("a" * 40, "1" * 64, day=1))
        log.record(_record("b" * 40, "2" * 64, day=3))
        log.record(_record("c" * 40, "3" * 64, day=2))
        revisions = [r.git_revision[0] for r in log.list_recent(limit=2)]
        assert revisions == ["b", "c"]

    def test_get_missing(self, tmp_path):
        assert AuditLog(tmp_path / "deploys.db").get("nope") is None

    def test_persists_across_instances(self, tmp_path):
        db = tmp_path / "deploys.db"
        AuditLog(db).record(_record("a" * 40, "1" * 64))
        assert AuditLog(db).count() == 1
