"""``s3deploy metadata``: write the ``.s3d`` record into the build directory."""

from __future__ import annotations

from datetime import datetime, timezone

from rich.console import Console

from s3deploy.cli._common import FATAL_ERRORS, fail, load_config
from s3deploy.core.metadata_record import write_metadata_record

console = Console()


def metadata_cmd() -> None:
    """Write the metadata record for the current run."""
    try:
        config = load_config()
    except FATAL_ERRORS as exc:
        raise fail(exc)
    path = write_metadata_record(config, datetime.now(timezone.utc))
    console.print(f"[bold]{path}[/bold]")
