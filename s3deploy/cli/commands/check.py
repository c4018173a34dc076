"""``s3deploy check``: look for an existing artifact for this commit.

On a match the artifact is copied to this run's location and latest
pointer, exactly as ``publish`` would do before stopping.
"""

from __future__ import annotations

from datetime import datetime, timezone

import typer
from rich.console import Console

from s3deploy.cli._common import FATAL_ERRORS, fail, load_config
from s3deploy.core.detector import DuplicateDetector
from s3deploy.core.object_store import ObjectStore

console = Console()


def check_cmd(
    copy: bool = typer.Option(
        True,
        "--copy/--no-copy",
        help="Copy a found artifact to this run's location and latest pointer.",
    ),
) -> None:
    """Check the primary branches (and the global namespace) for this commit."""
    now = datetime.now(timezone.utc)
    try:
        config = load_config(now=now)
        store = ObjectStore.from_credentials(
            config.credentials, max_attempts=config.s3_max_attempts
        )
        detector = DuplicateDetector(store, config)
        if copy:
            match = detector.check(now)
            source = match.source if match else None
        else:
            found = detector.find(now)
            source = found[1] if found else None
    except FATAL_ERRORS as exc:
        raise fail(exc)

    if source is None:
        console.print(f"[bold]Commit {config.context.commit} not built yet.[/bold]")
        return
    console.print(
        f"[bold yellow]Commit {config.context.commit} already built at {source.uri}[/bold yellow]"
    )
