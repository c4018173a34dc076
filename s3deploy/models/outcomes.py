"""Outcome models for best-effort side channels and whole runs.

Side channels (pointer copies, notifications, audit records) report a
``SideEffectOutcome`` instead of raising, so a failed side channel never
fails a publish whose primary artifact is already durable.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from s3deploy.models.artifacts import Artifact
from s3deploy.models.context import RunContext
from s3deploy.models.targets import TargetLocation


class SideEffectOutcome(BaseModel):
    """Result of one best-effort operation."""

    model_config = ConfigDict(frozen=True)

    channel: str  # "latest_pointer", "queue", "relay", "audit_log", ...
    ok: bool
    detail: str = ""

    @classmethod
    def success(cls, channel: str, detail: str = "") -> SideEffectOutcome:
        return cls(channel=channel, ok=True, detail=detail)

    @classmethod
    def failure(cls, channel: str, detail: str) -> SideEffectOutcome:
        return cls(channel=channel, ok=False, detail=detail)


class PublishStatus(str, Enum):
    """Terminal status of a publish run."""

    PUBLISHED = "published"
    DUPLICATE = "duplicate"


class PublishReport(BaseModel):
    """What a pipeline run did."""

    model_config = ConfigDict(frozen=True)

    status: PublishStatus
    context: RunContext
    primary: TargetLocation
    artifact: Artifact | None = None
    duplicate_source: TargetLocation | None = None
    tagged: bool = False
    outcomes: list[SideEffectOutcome] = []

    @property
    def failed_outcomes(self) -> list[SideEffectOutcome]:
        return [o for o in self.outcomes if not o.ok]
