"""``s3deploy sync LOCAL_DIR PREFIX``: sync a directory to the object store.

Skipped entirely for pull-request builds.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from s3deploy.cli._common import FATAL_ERRORS, fail, load_config
from s3deploy.core.object_store import ObjectStore
from s3deploy.core.publisher import FilterKind, SyncFilter, sync_directory
from s3deploy.models.targets import Acl

console = Console()


def build_filters(
    excludes: list[str] | None, includes: list[str] | None
) -> list[SyncFilter]:
    """Excludes first, then includes, so an include re-admits excluded files."""
    filters = [SyncFilter(kind=FilterKind.EXCLUDE, pattern=p) for p in excludes or []]
    filters.extend(SyncFilter(kind=FilterKind.INCLUDE, pattern=p) for p in includes or [])
    return filters


def sync_cmd(
    local_dir: Path = typer.Argument(..., help="Local directory to upload."),
    prefix: str = typer.Argument(..., help="Destination key prefix."),
    bucket: Optional[str] = typer.Option(
        None, "--bucket", "-b", help="Destination bucket (defaults to the run's bucket)."
    ),
    acl: Acl = typer.Option(Acl.PRIVATE, "--acl", help="Access control for uploaded objects."),
    exclude: Optional[list[str]] = typer.Option(
        None, "--exclude", help="Pattern to leave out (repeatable)."
    ),
    include: Optional[list[str]] = typer.Option(
        None, "--include", help="Pattern to re-admit after excludes (repeatable)."
    ),
) -> None:
    """Upload every selected file under LOCAL_DIR to PREFIX."""
    try:
        config = load_config()
        store = ObjectStore.from_credentials(
            config.credentials, max_attempts=config.s3_max_attempts
        )
        result = sync_directory(
            store,
            local_dir,
            bucket or config.bucket,
            prefix,
            acl=acl,
            filters=build_filters(exclude, include),
            is_pull_request=config.context.is_pull_request,
        )
    except FATAL_ERRORS as exc:
        raise fail(exc)

    if result.skipped:
        console.print("[dim]Pull-request build: sync skipped.[/dim]")
        return
    console.print(
        f"[bold green]Synced[/bold green] {len(result.uploaded)} uploaded, "
        f"{len(result.unchanged)} unchanged, {len(result.filtered)} filtered."
    )
