"""Build publisher pipeline: the central coordinator for one CI run.

Stages run strictly in order:

    resolve (done by the caller) -> detect duplicates -> archive + publish
        -> tag -> notify

The duplicate detector may short-circuit everything after it. In
"continue" mode the run context is re-issued with ``build_exists=True``
and archiving/uploading are skipped while tagging and notification still
happen.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timezone

from s3deploy.core.archiver import ArchiveError, ArchiveSpec, create_archive, stash
from s3deploy.core.audit_log import AuditLog
from s3deploy.core.detector import DuplicateDetector
from s3deploy.core.git_tag import create_tag
from s3deploy.core.metadata_record import write_metadata_record
from s3deploy.core.object_store import ObjectStore
from s3deploy.core.publisher import Publisher
from s3deploy.models.artifacts import Artifact
from s3deploy.models.audit import AuditRecord
from s3deploy.models.config import ResolvedConfig
from s3deploy.models.descriptor import RoutingHints
from s3deploy.models.outcomes import PublishReport, PublishStatus, SideEffectOutcome
from s3deploy.notify.descriptor import build_descriptor
from s3deploy.notify.notifier import Notifier

logger = logging.getLogger(__name__)


class BuildPublisher:
    """Runs the publish pipeline for a resolved configuration.

    Parameters
    ----------
    config:
        Output of :func:`s3deploy.core.resolver.resolve`.
    store:
        Object-store adapter.
    notifier:
        Deployment notifier; ``None`` disables notification.
    audit_log:
        Optional audit log written after a successful upload.
    tagger:
        Callable that tags the commit; returns whether a tag was made.
    stash_paths:
        Build-dir paths moved out of the tree while archiving.
    hints:
        Routing hints for the deployment descriptor (defaults to the
        configured ones).
    message:
        Free-form notification body replacing the generated JSON.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        store: ObjectStore,
        *,
        notifier: Notifier | None = None,
        audit_log: AuditLog | None = None,
        tagger: Callable[[ResolvedConfig], bool] = create_tag,
        stash_paths: list[str] | None = None,
        hints: RoutingHints | None = None,
        message: str | None = None,
    ) -> None:
        self.config = config
        self._store = store
        self._notifier = notifier
        self._audit_log = audit_log
        self._tagger = tagger
        self._stash_paths = stash_paths or []
        self._hints = hints
        self._message = message

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, now: datetime | None = None) -> PublishReport:
        """Execute the pipeline and return a report.

        Fatal errors (archiver, primary upload, tagging) propagate.
        Best-effort failures are collected on the report.
        """
        now = now or datetime.now(timezone.utc)
        config = self.config
        outcomes: list[SideEffectOutcome] = []

        config.cache_dir.mkdir(parents=True, exist_ok=True)

        duplicate = DuplicateDetector(self._store, config).check(now)
        if duplicate is not None:
            outcomes.extend(duplicate.outcomes)
            if not config.continue_on_duplicate:
                logger.info(
                    "Commit %s already built (%s); copied from %s, stopping.",
                    config.context.commit,
                    duplicate.scope,
                    duplicate.source,
                )
                return PublishReport(
                    status=PublishStatus.DUPLICATE,
                    context=config.context,
                    primary=config.primary,
                    duplicate_source=duplicate.source,
                    outcomes=outcomes,
                )
            context = config.context.model_copy(update={"build_exists": True})
            config = config.model_copy(update={"context": context})
            self.config = config
            logger.info("Build already exists; continuing for post-publish steps.")

        artifact: Artifact | None = None
        if not config.context.build_exists:
            artifact, publish_outcomes = self._archive_and_publish(config, now)
            outcomes.extend(publish_outcomes)

        tagged = self._tagger(config)

        if self._notifier is not None:
            descriptor = build_descriptor(config, now, self._hints)
            outcomes.append(self._notifier.notify(descriptor, self._message))

        for outcome in outcomes:
            if not outcome.ok:
                logger.warning("Best-effort step %s failed: %s", outcome.channel, outcome.detail)

        return PublishReport(
            status=PublishStatus.DUPLICATE if config.context.build_exists else PublishStatus.PUBLISHED,
            context=config.context,
            primary=config.primary,
            artifact=artifact,
            duplicate_source=duplicate.source if duplicate else None,
            tagged=tagged,
            outcomes=outcomes,
        )

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def _archive_and_publish(
        self, config: ResolvedConfig, now: datetime
    ) -> tuple[Artifact, list[SideEffectOutcome]]:
        if not config.build_dir.is_dir():
            raise ArchiveError(f"Build directory {config.build_dir} does not exist")
        write_metadata_record(config, now)
        spec = ArchiveSpec(
            build_dir=config.build_dir,
            target=config.tarball_path,
            exclude_patterns=config.exclude_patterns,
        )
        with stash(config.build_dir, self._stash_paths, config.cache_dir):
            artifact = create_archive(spec)

        outcomes: list[SideEffectOutcome] = []
        if self._notifier is not None:
            relayed = self._notifier.relay_archive(artifact.path, config.primary.key)
            if relayed is not None:
                outcomes.append(relayed)

        uploaded, pointer_outcomes = Publisher(self._store, config).publish(artifact, now)
        outcomes.extend(pointer_outcomes)

        if self._audit_log is not None:
            outcomes.append(self._record_audit(config, uploaded))
        return uploaded, outcomes

    def _record_audit(self, config: ResolvedConfig, artifact: Artifact) -> SideEffectOutcome:
        ctx = config.context
        entry = AuditRecord(
            git_revision=ctx.commit,
            git_branch=ctx.branch,
            git_repo_name=ctx.repo_name,
            git_repo_url=ctx.repo_url,
            pull_request=ctx.pull_request,
            s3_bucket=config.primary.bucket,
            s3_object_path=config.primary.key,
            s3_object_etag=artifact.etag,
            tarball_checksum=artifact.checksum,
        )
        try:
            added = self._audit_log.record(entry)
        except sqlite3.Error as exc:
            logger.error("Audit record for %s failed: %s", ctx.commit, exc)
            return SideEffectOutcome.failure("audit_log", str(exc))
        return SideEffectOutcome.success(
            "audit_log", "recorded" if added else "already recorded"
        )
