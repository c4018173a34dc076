"""Git tagging for deploy branches.

A build on a branch matching ``TAG_ON`` gets an annotated tag pushed to
``origin``. Pull-request builds are never tagged.
"""

from __future__ import annotations

import logging
import re
import subprocess

from s3deploy.models.config import ResolvedConfig

logger = logging.getLogger(__name__)


class TagError(RuntimeError):
    """Raised when creating or pushing the tag fails."""


def should_tag(config: ResolvedConfig) -> bool:
    ctx = config.context
    if ctx.is_pull_request or not config.tag_on:
        return False
    return re.search(config.tag_on, ctx.branch) is not None


def tag_message(config: ResolvedConfig) -> str:
    ctx = config.context
    return f"Pull request: {ctx.pull_request} -- build number: {ctx.build_number}"


def build_tag_args(config: ResolvedConfig) -> list[str]:
    return [
        "git",
        "-c", f"user.name={config.git_user_name}",
        "-c", f"user.email={config.git_user_email}",
        "tag", "-a", config.context.tag_name,
        "-m", tag_message(config),
    ]


def build_push_args(config: ResolvedConfig, remote: str = "origin") -> list[str]:
    return ["git", "push", remote, config.context.tag_name]


def _run(args: list[str], cwd: str) -> None:
    try:
        result = subprocess.run(args, capture_output=True, text=True, cwd=cwd, check=False)
    except OSError as exc:
        raise TagError(f"Could not run git: {exc}") from exc
    if result.returncode != 0:
        raise TagError(
            f"{' '.join(args[:1] + args[-3:])} exited {result.returncode}: "
            f"{result.stderr.strip()}"
        )


def create_tag(config: ResolvedConfig) -> bool:
    """Tag and push when the branch matches. Returns whether a tag was made.

    Raises
    ------
    TagError
        If ``git tag`` or ``git push`` fails.
    """
    if not should_tag(config):
        logger.debug(
            "Branch %s does not match %r; not tagging", config.context.branch, config.tag_on
        )
        return False

    cwd = str(config.build_dir)
    _run(build_tag_args(config), cwd)
    _run(build_push_args(config), cwd)
    logger.info("Tagged %s as %s", config.context.commit, config.context.tag_name)
    return True
