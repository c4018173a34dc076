"""``s3deploy verify-fingerprints DIR``: guard against non-cache-busted assets."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from s3deploy.core.fingerprint import (
    DEFAULT_MANIFEST_NAME,
    FingerprintError,
    verify_fingerprints,
)

console = Console()


def verify_fingerprints_cmd(
    directory: Path = typer.Argument(..., help="Directory of built assets."),
    manifest: str = typer.Option(
        DEFAULT_MANIFEST_NAME, "--manifest", help="Manifest file name to ignore."
    ),
) -> None:
    """Fail (exit 1) if any file lacks a content hash in its name."""
    try:
        verify_fingerprints(directory, manifest_name=manifest)
    except FingerprintError as exc:
        console.print("[bold red]Unfingerprinted assets found:[/bold red]")
        for name in exc.offenders:
            console.print(f"  [red]- {name}[/red]")
        raise typer.Exit(code=1)
    except FileNotFoundError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[bold green]All assets in {directory} are fingerprinted.[/bold green]")
