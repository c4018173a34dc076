"""Main Typer application: imports and registers all CLI commands.

Entry point: ``s3deploy`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from s3deploy.cli.commands.check import check_cmd
from s3deploy.cli.commands.fingerprints import verify_fingerprints_cmd
from s3deploy.cli.commands.metadata import metadata_cmd
from s3deploy.cli.commands.notify_cmd import notify_cmd
from s3deploy.cli.commands.publish import publish_cmd
from s3deploy.cli.commands.sync import sync_cmd
from s3deploy.config import DeploySettings

app = typer.Typer(
    name="s3deploy",
    help="s3deploy: package CI builds, skip duplicates, publish to S3 and notify.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="publish", help="Archive the build and publish it (full pipeline).")(publish_cmd)
app.command(name="check", help="Check for an existing artifact for this commit.")(check_cmd)
app.command(name="sync", help="Sync a local directory to an object-store prefix.")(sync_cmd)
app.command(
    name="verify-fingerprints", help="Fail if any asset lacks a content hash in its name."
)(verify_fingerprints_cmd)
app.command(name="notify", help="Send the deployment descriptor downstream.")(notify_cmd)
app.command(name="metadata", help="Write the .s3d metadata record into the build.")(metadata_cmd)


def configure_logging(level: str) -> None:
    """Route log records through Rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to S3D_LOG_LEVEL or INFO).",
    ),
) -> None:
    """s3deploy: package CI builds, skip duplicates, publish to S3 and notify."""
    configure_logging(log_level or DeploySettings().log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
