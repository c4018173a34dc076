"""s3deploy data models: all Pydantic v2, all frozen (immutable)."""

from s3deploy.models.artifacts import Artifact
from s3deploy.models.audit import AuditRecord
from s3deploy.models.config import AwsCredentials, RelayConfig, ResolvedConfig
from s3deploy.models.context import NOT_A_PULL_REQUEST, RunContext
from s3deploy.models.descriptor import (
    DeploymentDescriptor,
    MetadataRecord,
    RoutingHints,
)
from s3deploy.models.outcomes import PublishReport, PublishStatus, SideEffectOutcome
from s3deploy.models.targets import Acl, TargetLocation

__all__ = [
    # context
    "NOT_A_PULL_REQUEST",
    "RunContext",
    # targets
    "Acl",
    "TargetLocation",
    # artifacts
    "Artifact",
    # descriptors
    "MetadataRecord",
    "RoutingHints",
    "DeploymentDescriptor",
    # outcomes
    "SideEffectOutcome",
    "PublishStatus",
    "PublishReport",
    # audit
    "AuditRecord",
    # config
    "AwsCredentials",
    "RelayConfig",
    "ResolvedConfig",
]
