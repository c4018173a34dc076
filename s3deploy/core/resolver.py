"""Configuration resolver: fills in every absent parameter for a run.

The resolver is pure: it reads a :class:`DeploySettings`, an injected
``now`` and optional overrides, and returns a frozen
:class:`ResolvedConfig`. It never touches the network or the filesystem,
so a configuration error always surfaces before any remote call.

Secret values are checked for presence only and never formatted into a
message or log line.
"""

from __future__ import annotations

import logging
import re
import shlex
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from s3deploy.config import DeploySettings
from s3deploy.core import keys
from s3deploy.models.config import AwsCredentials, RelayConfig, ResolvedConfig
from s3deploy.models.context import RunContext
from s3deploy.models.descriptor import RoutingHints
from s3deploy.models.targets import TargetLocation

logger = logging.getLogger(__name__)

_EXCLUDE_FLAG = "--exclude"


class ConfigurationError(RuntimeError):
    """Raised when the run cannot be configured; the process must exit 1."""


def split_repo_slug(slug: str) -> tuple[str, str]:
    """Split ``owner/name`` at the slash.

    Raises
    ------
    ConfigurationError
        If the slug has no slash or either side is empty.
    """
    owner, sep, name = slug.partition("/")
    if not sep or not owner or not name:
        raise ConfigurationError(
            f"Repository slug {slug!r} is not in the form 'owner/name'."
        )
    return owner, name


def parse_exclude_paths(raw: str) -> list[str]:
    """Parse ``TARBALL_EXCLUDE_PATHS`` into bare patterns.

    Accepts both the legacy ``--exclude=a --exclude=b`` form and a plain
    whitespace-separated list of patterns.
    """
    patterns: list[str] = []
    for token in shlex.split(raw):
        if token == _EXCLUDE_FLAG:
            continue
        if token.startswith(_EXCLUDE_FLAG + "="):
            token = token[len(_EXCLUDE_FLAG) + 1 :]
        if token:
            patterns.append(token)
    return patterns


def default_tag_name(branch: str, now: datetime) -> str:
    """``<branch>-YYYY-MM-DD-HH-MM`` in UTC."""
    return f"{branch}-{now.astimezone(timezone.utc).strftime('%Y-%m-%d-%H-%M')}"


def _check_required(settings: DeploySettings) -> None:
    violations: list[str] = []
    if not settings.repo_slug:
        violations.append("TRAVIS_REPO_SLUG not set")
    if not settings.commit:
        violations.append("TRAVIS_COMMIT not set")
    if not settings.branch:
        violations.append("TRAVIS_BRANCH not set")
    if not settings.access_key_id:
        violations.append("AWS_ACCESS_KEY_ID not set")
    if not settings.secret_access_key.get_secret_value():
        violations.append("AWS_SECRET_ACCESS_KEY not set")
    if settings.check_months not in (1, 2):
        violations.append(
            f"S3D_CHECK_MONTHS must be 1 or 2, got {settings.check_months}"
        )
    try:
        re.compile(settings.tag_on)
    except re.error as exc:
        violations.append(f"TAG_ON is not a valid regular expression: {exc}")

    if violations:
        msg = "Configuration failed.\n" + "\n".join(f"  - {v}" for v in violations)
        logger.error(msg)
        raise ConfigurationError(msg)


def resolve(
    settings: DeploySettings,
    now: datetime | None = None,
    overrides: dict[str, Any] | None = None,
) -> ResolvedConfig:
    """Apply every default rule and return the resolved configuration.

    Parameters
    ----------
    settings:
        Raw settings, usually read from the environment.
    now:
        Resolution time; drives the dated object key and the tag name.
        Defaults to the current UTC time.
    overrides:
        Field values that replace the corresponding settings (CLI flags).
        ``None`` values are ignored.

    Raises
    ------
    ConfigurationError
        On a malformed slug or missing mandatory inputs.
    """
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    if overrides:
        update = {k: v for k, v in overrides.items() if v is not None}
        unknown = set(update) - set(DeploySettings.model_fields)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        settings = settings.model_copy(update=update)

    _check_required(settings)
    owner, slug_name = split_repo_slug(settings.repo_slug)
    repo = settings.repo_name or slug_name

    context = RunContext(
        repo_slug=settings.repo_slug,
        repo_owner=owner,
        repo_name=repo,
        commit=settings.commit,
        branch=settings.branch,
        build_number=settings.build_number,
        pull_request=settings.pull_request or "false",
        tag_name=settings.tag_name or default_tag_name(settings.branch, now),
        secure_env=settings.secure_env_vars,
    )

    bucket = settings.bucket or (
        settings.production_bucket if settings.secure_env_vars else settings.development_bucket
    )
    ns = settings.global_namespace_dir or keys.DEFAULT_GLOBAL_NAMESPACE

    branch_key = settings.object_path or keys.branch_key(
        repo, settings.branch, keys.month_path(now), settings.commit
    )
    if settings.global_object_path:
        global_key = settings.global_object_path
    elif context.is_pull_request:
        global_key = keys.global_pull_request_key(repo, context.pull_request, ns)
    else:
        global_key = keys.global_commit_key(repo, settings.commit, ns)

    branch_target = TargetLocation(bucket=bucket, key=branch_key)
    global_target = TargetLocation(bucket=bucket, key=global_key)
    # Pull-request builds never write branch-scoped keys.
    primary = global_target if context.is_pull_request else branch_target

    resolved = ResolvedConfig(
        context=context,
        credentials=AwsCredentials(
            access_key_id=settings.access_key_id,
            secret_access_key=settings.secret_access_key,
            region=settings.region,
        ),
        build_dir=Path(settings.build_dir),
        tarball_path=Path(settings.tarball_target_path or f"/tmp/{repo}.tar.gz"),
        exclude_patterns=parse_exclude_paths(settings.tarball_exclude_paths),
        cache_dir=settings.cache_dir,
        metadata_file=settings.metadata_file,
        bucket=bucket,
        primary=primary,
        branch_target=branch_target,
        latest=TargetLocation(bucket=bucket, key=keys.latest_key(repo, settings.branch)),
        global_target=global_target,
        global_branch=TargetLocation(
            bucket=bucket, key=keys.global_branch_key(repo, settings.branch, ns)
        ),
        global_namespace_dir=ns,
        publish_global=settings.publish_global,
        primary_branches=settings.primary_branch_list,
        check_months=settings.check_months,
        continue_on_duplicate=settings.continue_on_duplicate,
        tag_on=settings.tag_on,
        git_user_name=settings.git_user_name,
        git_user_email=settings.git_user_email,
        queue_name=settings.queue_name,
        relay=RelayConfig(
            url=settings.relay_url,
            username=settings.relay_username,
            password=settings.relay_password,
            timeout=settings.relay_timeout,
            binary_branch=settings.binary_relay_branch,
        ),
        hints=RoutingHints(
            hook_type=settings.hook_type,
            scm_provider=settings.scm_provider,
            chef_app_attr=settings.chef_app_attr,
            url_affix=settings.url_affix,
            runlist=settings.runlist,
        ),
        audit_db_path=settings.audit_db_path,
        s3_max_attempts=settings.s3_max_attempts,
    )
    logger.info(
        "Resolved %s@%s (branch=%s, pr=%s) -> %s",
        context.repo_slug,
        context.commit,
        context.branch,
        context.pull_request,
        resolved.primary,
    )
    return resolved
