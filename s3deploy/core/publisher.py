"""Publisher: upload the archive and keep derivative pointers current.

The primary upload is the durable publish: if it fails the run fails.
Derivative pointers (branch latest, global per-commit, global per-branch)
are refreshed by server-side copy afterwards and are best-effort.

Directory sync is exposed separately for publishing arbitrary local trees
(static assets, docs) under an object-store prefix.
"""

from __future__ import annotations

import fnmatch
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from s3deploy.core.hasher import md5_file
from s3deploy.core.object_store import ObjectStore, ObjectStoreError
from s3deploy.models.artifacts import Artifact
from s3deploy.models.config import ResolvedConfig
from s3deploy.models.outcomes import SideEffectOutcome
from s3deploy.models.targets import Acl, TargetLocation

logger = logging.getLogger(__name__)


def upload_metadata(revision: str, pull_request: str, now: datetime) -> dict[str, str]:
    """Metadata attached to every uploaded archive."""
    return {
        "revision": revision,
        "pull-request": pull_request,
        "uploaded": now.astimezone(timezone.utc).isoformat(),
    }


class Publisher:
    """Uploads an archive to its primary location and refreshes pointers.

    Parameters
    ----------
    store:
        Object-store adapter.
    config:
        The resolved run configuration.
    """

    def __init__(self, store: ObjectStore, config: ResolvedConfig) -> None:
        self._store = store
        self._config = config

    def pointer_targets(self) -> list[tuple[str, TargetLocation]]:
        """Derivative locations refreshed after the primary upload."""
        ctx = self._config.context
        if ctx.is_pull_request:
            return []
        targets: list[tuple[str, TargetLocation]] = [("latest_pointer", self._config.latest)]
        if self._config.publish_global:
            targets.append(("global_commit", self._config.global_target))
            targets.append(("global_branch", self._config.global_branch))
        return [
            (channel, location)
            for channel, location in targets
            if not location.same_object(self._config.primary)
        ]

    def upload(self, artifact: Artifact, now: datetime) -> Artifact:
        """Upload *artifact* to the primary location.

        Raises
        ------
        ObjectStoreError
            If the upload fails.
        """
        ctx = self._config.context
        primary = self._config.primary
        etag = self._store.put_file(
            artifact.path,
            primary,
            metadata=upload_metadata(ctx.commit, ctx.pull_request, now),
        )
        return artifact.model_copy(update={"etag": etag, "location": primary})

    def update_pointers(self) -> list[SideEffectOutcome]:
        """Copy the primary object to every configured pointer."""
        outcomes: list[SideEffectOutcome] = []
        for channel, location in self.pointer_targets():
            try:
                self._store.copy(self._config.primary, location)
                outcomes.append(SideEffectOutcome.success(channel, location.uri))
            except ObjectStoreError as exc:
                logger.error("Pointer %s update failed: %s", channel, exc)
                outcomes.append(SideEffectOutcome.failure(channel, str(exc)))
        return outcomes

    def publish(
        self, artifact: Artifact, now: datetime
    ) -> tuple[Artifact, list[SideEffectOutcome]]:
        """Upload, then refresh pointers. Returns the uploaded artifact."""
        uploaded = self.upload(artifact, now)
        return uploaded, self.update_pointers()


# ---------------------------------------------------------------------------
# Directory sync
# ---------------------------------------------------------------------------


class FilterKind(str, Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"


class SyncFilter(BaseModel):
    """One include/exclude rule. Later rules take precedence."""

    model_config = ConfigDict(frozen=True)

    kind: FilterKind
    pattern: str


class SyncResult(BaseModel):
    """Keys written and files left alone by a sync."""

    model_config = ConfigDict(frozen=True)

    uploaded: list[str] = []
    unchanged: list[str] = []
    filtered: list[str] = []
    skipped: bool = False


def is_selected(rel_path: str, filters: list[SyncFilter]) -> bool:
    """Apply *filters* in order; every path starts out included."""
    selected = True
    for rule in filters:
        if fnmatch.fnmatch(rel_path, rule.pattern):
            selected = rule.kind is FilterKind.INCLUDE
    return selected


def sync_directory(
    store: ObjectStore,
    local_dir: Path,
    bucket: str,
    prefix: str,
    *,
    acl: Acl = Acl.PRIVATE,
    filters: list[SyncFilter] | None = None,
    is_pull_request: bool = False,
) -> SyncResult:
    """Upload every selected file under *local_dir* to ``bucket/prefix``.

    Files whose remote size and MD5 entity tag already match are left
    alone. Pull-request builds never sync.

    Raises
    ------
    ObjectStoreError
        If any upload fails.
    """
    if is_pull_request:
        logger.info("Pull-request build: skipping sync of %s", local_dir)
        return SyncResult(skipped=True)

    root = Path(local_dir)
    if not root.is_dir():
        raise ObjectStoreError(f"Sync source {root} is not a directory")

    prefix = prefix.strip("/")
    uploaded: list[str] = []
    unchanged: list[str] = []
    filtered: list[str] = []

    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        rel = path.relative_to(root).as_posix()
        if not is_selected(rel, filters or []):
            filtered.append(rel)
            continue

        key = f"{prefix}/{rel}" if prefix else rel
        location = TargetLocation(bucket=bucket, key=key, acl=acl)
        remote = store.head(location)
        if (
            remote.found
            and remote.size_bytes == path.stat().st_size
            and remote.etag == md5_file(path)
        ):
            unchanged.append(key)
            continue

        store.put_file(path, location)
        uploaded.append(key)

    logger.info(
        "Synced %s -> s3://%s/%s: %d uploaded, %d unchanged, %d filtered",
        root,
        bucket,
        prefix,
        len(uploaded),
        len(unchanged),
        len(filtered),
    )
    return SyncResult(uploaded=uploaded, unchanged=unchanged, filtered=filtered)
