"""Environment-driven settings for s3deploy.

CI-provided variables (``TRAVIS_*``, ``AWS_*``, ``GIT_*``, ``TARBALL_*``,
``TAG_ON``) are read under their native names. Everything owned by this
project uses the ``S3D_`` prefix and may also come from a ``.env`` file.

Examples
--------
Point a run at a custom bucket and turn on global-namespace copies::

    export AWS_S3_BUCKET=my-deployments
    export S3D_PUBLISH_GLOBAL=true

Keep going after a duplicate is found so tagging still happens::

    export S3D_CONTINUE_ON_DUPLICATE=true
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class DeploySettings(BaseSettings):
    """Raw, unresolved inputs for one CI invocation.

    Values left empty here are filled in by
    :func:`s3deploy.core.resolver.resolve`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="S3D_",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    # CI run identity
    repo_slug: str = Field("", validation_alias=_env("TRAVIS_REPO_SLUG", "S3D_REPO_SLUG"))
    commit: str = Field("", validation_alias=_env("TRAVIS_COMMIT", "S3D_COMMIT"))
    branch: str = Field("", validation_alias=_env("TRAVIS_BRANCH", "S3D_BRANCH"))
    build_number: str = Field("", validation_alias=_env("TRAVIS_BUILD_NUMBER", "S3D_BUILD_NUMBER"))
    pull_request: str = Field("false", validation_alias=_env("TRAVIS_PULL_REQUEST", "S3D_PULL_REQUEST"))
    secure_env_vars: bool = Field(
        False, validation_alias=_env("TRAVIS_SECURE_ENV_VARS", "S3D_SECURE_ENV_VARS")
    )
    build_dir: Path = Field(Path("."), validation_alias=_env("TRAVIS_BUILD_DIR", "S3D_BUILD_DIR"))

    # Repository and tagging
    repo_name: str = Field("", validation_alias=_env("GIT_REPO_NAME", "S3D_REPO_NAME"))
    tag_name: str = Field("", validation_alias=_env("GIT_TAG_NAME", "S3D_TAG_NAME"))
    tag_on: str = Field("^production$", validation_alias=_env("TAG_ON", "S3D_TAG_ON"))
    git_user_name: str = "s3deploy"
    git_user_email: str = "s3deploy@localhost"

    # Archive
    tarball_target_path: str = Field(
        "", validation_alias=_env("TARBALL_TARGET_PATH", "S3D_TARBALL_TARGET_PATH")
    )
    tarball_exclude_paths: str = Field(
        "", validation_alias=_env("TARBALL_EXCLUDE_PATHS", "S3D_TARBALL_EXCLUDE_PATHS")
    )
    cache_dir: Path = Path("/tmp/s3deploy_cache")
    metadata_file: str = ".s3d"

    # Object store
    bucket: str = Field("", validation_alias=_env("AWS_S3_BUCKET", "S3D_BUCKET"))
    object_path: str = Field("", validation_alias=_env("AWS_S3_OBJECT_PATH", "S3D_OBJECT_PATH"))
    global_namespace_dir: str = Field(
        "_global_",
        validation_alias=_env("AWS_S3_GLOBAL_NAMESPACE_DIR", "S3D_GLOBAL_NAMESPACE_DIR"),
    )
    global_object_path: str = Field(
        "", validation_alias=_env("AWS_S3_GLOBAL_OBJECT_PATH", "S3D_GLOBAL_OBJECT_PATH")
    )
    production_bucket: str = "og-deployments"
    development_bucket: str = "og-deployments-dev"
    publish_global: bool = False
    s3_max_attempts: int = 3

    # Credentials
    region: str = Field("us-east-1", validation_alias=_env("AWS_DEFAULT_REGION", "S3D_REGION"))
    access_key_id: str = Field("", validation_alias=_env("AWS_ACCESS_KEY_ID", "S3D_ACCESS_KEY_ID"))
    secret_access_key: SecretStr = Field(
        SecretStr(""),
        validation_alias=_env("AWS_SECRET_ACCESS_KEY", "S3D_SECRET_ACCESS_KEY"),
    )

    # Duplicate detection
    primary_branches: str = "master"  # comma-separated
    check_months: int = 2
    continue_on_duplicate: bool = False

    # Notification
    queue_name: str = Field("", validation_alias=_env("AWS_SQS_NAME", "S3D_QUEUE_NAME"))
    relay_url: str = ""
    relay_username: str = ""
    relay_password: SecretStr = SecretStr("")
    relay_timeout: float = 10.0
    binary_relay_branch: str = ""
    hook_type: str = "s3deploy"
    scm_provider: str = "github"
    chef_app_attr: str = ""
    url_affix: str = ""
    runlist: str = ""

    # Reporting
    audit_db_path: Path | None = None

    # Observability
    log_level: str = "INFO"

    @property
    def primary_branch_list(self) -> list[str]:
        return [b.strip() for b in self.primary_branches.split(",") if b.strip()]
