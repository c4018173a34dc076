"""Resolved run configuration: the fully populated output of the resolver."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, SecretStr

from s3deploy.models.context import RunContext
from s3deploy.models.descriptor import RoutingHints
from s3deploy.models.targets import TargetLocation


class AwsCredentials(BaseModel):
    """Object-store and queue credentials. The secret never renders."""

    model_config = ConfigDict(frozen=True)

    access_key_id: str
    secret_access_key: SecretStr
    region: str = "us-east-1"


class RelayConfig(BaseModel):
    """HTTP relay used when queue credentials are unavailable."""

    model_config = ConfigDict(frozen=True)

    url: str = ""
    username: str = ""
    password: SecretStr = SecretStr("")
    timeout: float = 10.0
    binary_branch: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    @property
    def has_basic_auth(self) -> bool:
        return bool(self.username) and bool(self.password.get_secret_value())


class ResolvedConfig(BaseModel):
    """Everything one publish run needs, with every default applied.

    Target locations are derived deterministically from the run context
    and the resolution date unless explicitly overridden.
    """

    model_config = ConfigDict(frozen=True)

    context: RunContext
    credentials: AwsCredentials

    # Archive
    build_dir: Path
    tarball_path: Path
    exclude_patterns: list[str] = []
    cache_dir: Path = Path("/tmp/s3deploy_cache")
    metadata_file: str = ".s3d"

    # Storage
    bucket: str
    primary: TargetLocation
    branch_target: TargetLocation
    latest: TargetLocation
    global_target: TargetLocation
    global_branch: TargetLocation
    global_namespace_dir: str = "_global_"
    publish_global: bool = False

    # Duplicate detection
    primary_branches: list[str] = ["master"]
    check_months: int = 2
    continue_on_duplicate: bool = False

    # Tagging
    tag_on: str = "^production$"
    git_user_name: str = "s3deploy"
    git_user_email: str = "s3deploy@localhost"

    # Notification
    queue_name: str = ""
    relay: RelayConfig = RelayConfig()
    hints: RoutingHints = RoutingHints()

    audit_db_path: Path | None = None
    s3_max_attempts: int = 3
