"""Duplicate detector: reuse an artifact already built for this commit.

A commit that was already archived on one of the primary branches, or on
this run's own branch, is not rebuilt. Instead the existing object is
copied server-side to this run's primary location and to the branch's
latest pointer. Pull-request builds are matched on their own global key
by stored revision.

A failed existence query is treated as "not found" so the pipeline goes on
to publish afresh: a redundant upload is preferred over a false skip. The
two cases are still logged separately.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict

from s3deploy.core import keys
from s3deploy.core.object_store import ExistenceStatus, ObjectStore, ObjectStoreError
from s3deploy.models.config import ResolvedConfig
from s3deploy.models.outcomes import SideEffectOutcome
from s3deploy.models.targets import TargetLocation

logger = logging.getLogger(__name__)

REVISION_METADATA_KEY = "revision"


class DuplicateMatch(BaseModel):
    """An existing artifact for this commit, and what was done with it."""

    model_config = ConfigDict(frozen=True)

    source: TargetLocation
    scope: str
    outcomes: list[SideEffectOutcome] = []


class DuplicateDetector:
    """Checks the object store for an artifact matching the current commit.

    Parameters
    ----------
    store:
        Object-store adapter used for HEAD queries and copies.
    config:
        The resolved run configuration.
    """

    def __init__(self, store: ObjectStore, config: ResolvedConfig) -> None:
        self._store = store
        self._config = config

    def candidate_locations(self, now: datetime) -> list[tuple[str, TargetLocation]]:
        """Expected locations per branch and trailing month, in UTC.

        The primary branches come first, then the run's own branch. Returns
        ``(scope, location)`` pairs in query order.
        """
        ctx = self._config.context
        now = now.astimezone(timezone.utc)
        branches = list(self._config.primary_branches)
        if ctx.branch not in branches:
            branches.append(ctx.branch)

        candidates: list[tuple[str, TargetLocation]] = []
        for branch in branches:
            for month in keys.trailing_months(now, self._config.check_months):
                key = keys.branch_key(ctx.repo_name, branch, month, ctx.commit)
                candidates.append(
                    (f"{branch} {month}", TargetLocation(bucket=self._config.bucket, key=key))
                )
        return candidates

    def find_existing(self, now: datetime) -> tuple[str, TargetLocation] | None:
        """Return the first candidate that exists, or ``None``."""
        failed = 0
        candidates = self.candidate_locations(now)
        for scope, location in candidates:
            result = self._store.head(location)
            if result.status is ExistenceStatus.FOUND:
                logger.info(
                    "Commit %s already built at %s", self._config.context.commit, location
                )
                return scope, location
            if result.status is ExistenceStatus.FAILED:
                failed += 1
                logger.warning(
                    "Existence query for %s failed; treating as not found: %s",
                    location,
                    result.error,
                )

        if failed:
            logger.warning(
                "Duplicate check inconclusive: %d of %d queries failed",
                failed,
                len(candidates),
            )
        else:
            logger.info(
                "Commit %s confirmed absent in %d candidate locations",
                self._config.context.commit,
                len(candidates),
            )
        return None

    def find_existing_global(self) -> TargetLocation | None:
        """Check the canonical global location by stored revision metadata.

        The global key does not encode the commit in every configuration,
        so existence alone is not enough; the ``revision`` metadata must
        equal the current commit.
        """
        location = self._config.global_target
        result = self._store.head(location)
        if result.status is ExistenceStatus.FAILED:
            logger.warning(
                "Global existence query for %s failed; treating as not found: %s",
                location,
                result.error,
            )
            return None
        if not result.found:
            return None

        revision = result.metadata.get(REVISION_METADATA_KEY, "")
        if revision != self._config.context.commit:
            logger.info(
                "Global artifact %s holds revision %s, not %s",
                location,
                revision or "<none>",
                self._config.context.commit,
            )
            return None
        return location

    def propagate(self, source: TargetLocation) -> list[SideEffectOutcome]:
        """Copy an existing artifact to the primary location and latest pointer.

        The primary copy is the publish for this run and raises
        :class:`ObjectStoreError` on failure. The latest-pointer copy is
        best-effort.
        """
        primary = self._config.primary
        if source.same_object(primary):
            logger.info("Existing artifact is already at %s", primary)
        else:
            self._store.copy(source, primary)

        outcomes: list[SideEffectOutcome] = []
        if self._config.context.is_pull_request:
            return outcomes

        latest = self._config.latest
        if source.same_object(latest):
            return outcomes
        try:
            self._store.copy(source, latest)
            outcomes.append(SideEffectOutcome.success("latest_pointer", latest.uri))
        except ObjectStoreError as exc:
            logger.error("Latest pointer update failed: %s", exc)
            outcomes.append(SideEffectOutcome.failure("latest_pointer", str(exc)))
        return outcomes

    def find(self, now: datetime) -> tuple[str, TargetLocation] | None:
        """Locate an existing artifact for this commit without copying it.

        Pull-request builds only check their own global key by revision
        metadata. Other builds check the dated branch keys, then the global
        key when global publishing is on.
        """
        if self._config.context.is_pull_request:
            found = None
        else:
            found = self.find_existing(now)
        if found is None and (
            self._config.context.is_pull_request or self._config.publish_global
        ):
            global_location = self.find_existing_global()
            if global_location is not None:
                found = ("global", global_location)
        return found

    def check(self, now: datetime) -> DuplicateMatch | None:
        """Look for an existing artifact and propagate it on a match."""
        found = self.find(now)
        if found is None:
            return None

        scope, source = found
        outcomes = self.propagate(source)
        return DuplicateMatch(source=source, scope=scope, outcomes=outcomes)
