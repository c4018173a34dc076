"""Append-only deployments audit log backed by SQLite.

One row per published (commit, checksum) for external reporting. The
publisher writes to it after a successful upload but never reads it back:
duplicate detection always asks the object store.

Design:
- Append-only: only ``record()`` writes; no update, no delete.
- ``git_revision`` is the primary key; ``tarball_checksum`` is unique.
- Re-recording an existing revision or checksum is a no-op.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path

from s3deploy.models.audit import AuditRecord

# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_DEPLOYMENTS = """
CREATE TABLE IF NOT EXISTS deployments (
    git_revision      CHARACTER(40) PRIMARY KEY NOT NULL,
    git_branch        VARCHAR(255),
    git_repo_name     VARCHAR(255),
    git_repo_url      VARCHAR(255),
    pull_request      VARCHAR(32),
    s3_bucket         VARCHAR(255) NOT NULL,
    s3_object_path    TEXT NOT NULL,
    s3_object_etag    TEXT NOT NULL,
    tarball_checksum  CHARACTER(64) UNIQUE NOT NULL,
    created           TEXT NOT NULL
);
"""

_CREATE_IDX_CREATED = """
CREATE INDEX IF NOT EXISTS index_deployments_on_created ON deployments(created);
"""

_COLUMNS = (
    "git_revision",
    "git_branch",
    "git_repo_name",
    "git_repo_url",
    "pull_request",
    "s3_bucket",
    "s3_object_path",
    "s3_object_etag",
    "tarball_checksum",
    "created",
)


class AuditLog:
    """Append-only deployments table.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_DEPLOYMENTS)
            conn.execute(_CREATE_IDX_CREATED)
            conn.commit()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def record(self, entry: AuditRecord) -> bool:
        """Insert *entry* unless its revision or checksum is already present.

        Returns True if a row was added.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                f"INSERT OR IGNORE INTO deployments ({', '.join(_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in _COLUMNS)})",
                (
                    entry.git_revision,
                    entry.git_branch,
                    entry.git_repo_name,
                    entry.git_repo_url,
                    entry.pull_request,
                    entry.s3_bucket,
                    entry.s3_object_path,
                    entry.s3_object_etag,
                    entry.tarball_checksum,
                    entry.created.isoformat(),
                ),
            )
            conn.commit()
            return cursor.rowcount == 1

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def get(self, git_revision: str) -> AuditRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM deployments WHERE git_revision = ?",
                (git_revision,),
            ).fetchone()
        return self._row_to_record(row) if row else None

    def list_recent(self, limit: int = 50) -> list[AuditRecord]:
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM deployments "
                "ORDER BY created DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [self._row_to_record(row) for row in rows]

    def count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM deployments").fetchone()[0]

    @staticmethod
    def _row_to_record(row: tuple) -> AuditRecord:
        data = dict(zip(_COLUMNS, row))
        data["created"] = datetime.fromisoformat(data["created"])
        return AuditRecord(**data)
