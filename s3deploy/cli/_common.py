"""Helpers shared by CLI commands: config loading and exit-code mapping."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import typer
from rich.console import Console

from s3deploy.config import DeploySettings
from s3deploy.core.archiver import ArchiveError
from s3deploy.core.fingerprint import FingerprintError
from s3deploy.core.git_tag import TagError
from s3deploy.core.object_store import ObjectStoreError
from s3deploy.core.resolver import ConfigurationError, resolve
from s3deploy.models.config import ResolvedConfig

err_console = Console(stderr=True)

FATAL_ERRORS = (ConfigurationError, ArchiveError, ObjectStoreError, FingerprintError, TagError)


def exit_code_for(exc: BaseException) -> int:
    """Process exit status for a fatal error."""
    if isinstance(exc, ArchiveError):
        return exc.returncode
    return 1


def fail(exc: BaseException) -> typer.Exit:
    """Print *exc* and return the ``typer.Exit`` to raise."""
    label = type(exc).__name__
    err_console.print(f"[bold red]{label}:[/bold red] {exc}")
    return typer.Exit(code=exit_code_for(exc))


def load_config(
    overrides: dict[str, Any] | None = None,
    extra_excludes: list[str] | None = None,
    now: datetime | None = None,
) -> ResolvedConfig:
    """Read settings from the environment and resolve them.

    Raises
    ------
    ConfigurationError
        If mandatory inputs are missing or malformed.
    """
    config = resolve(DeploySettings(), now=now, overrides=overrides)
    if extra_excludes:
        config = config.model_copy(
            update={"exclude_patterns": [*config.exclude_patterns, *extra_excludes]}
        )
    return config
