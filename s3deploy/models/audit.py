"""Audit record model: one row per published (commit, checksum)."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class AuditRecord(BaseModel):
    """A single row of the external ``deployments`` table.

    Append-only. ``git_revision`` is the primary key and
    ``tarball_checksum`` is unique.
    """

    model_config = ConfigDict(frozen=True)

    git_revision: str
    git_branch: str
    git_repo_name: str
    git_repo_url: str = ""
    pull_request: str = "false"
    s3_bucket: str
    s3_object_path: str
    s3_object_etag: str
    tarball_checksum: str
    created: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
