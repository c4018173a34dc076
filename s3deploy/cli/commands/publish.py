"""``s3deploy publish``: run the full pipeline for the current CI job.

Resolves configuration, checks for a duplicate build, archives and
uploads the build directory, refreshes pointers, tags the commit on
deploy branches and sends the deployment notice.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from s3deploy.cli._common import FATAL_ERRORS, fail, load_config
from s3deploy.core.audit_log import AuditLog
from s3deploy.core.object_store import ObjectStore
from s3deploy.core.pipeline import BuildPublisher
from s3deploy.models.outcomes import PublishReport, PublishStatus
from s3deploy.notify.notifier import Notifier

console = Console()


def publish_cmd(
    exclude: Optional[list[str]] = typer.Option(
        None,
        "--exclude",
        "-e",
        help="Pattern to exclude from the archive (repeatable).",
    ),
    stash_path: Optional[list[str]] = typer.Option(
        None,
        "--stash",
        help="Build-dir path to move aside while archiving (repeatable).",
    ),
    continue_on_duplicate: Optional[bool] = typer.Option(
        None,
        "--continue-on-duplicate/--halt-on-duplicate",
        help="Keep going (tag, notify) when the build already exists.",
    ),
    publish_global: Optional[bool] = typer.Option(
        None,
        "--global/--no-global",
        help="Also refresh the global-namespace copies.",
    ),
    notify: bool = typer.Option(
        True,
        "--notify/--no-notify",
        help="Send the deployment notice after publishing.",
    ),
    message: Optional[str] = typer.Option(
        None, "--message", "-m", help="Free-form notice body replacing the JSON descriptor."
    ),
    hook_type: Optional[str] = typer.Option(None, help="Descriptor hook_type."),
    scm_provider: Optional[str] = typer.Option(None, help="Source-control provider label."),
    chef_app_attr: Optional[str] = typer.Option(None, help="Deployment attribute name."),
    url_affix: Optional[str] = typer.Option(None, help="URL affix token."),
    runlist: Optional[str] = typer.Option(None, help="Deployment runlist."),
) -> None:
    """Archive the build directory and publish it to the object store.

    Exit status:
    - 0 on success, or when the commit was already built.
    - 1 on configuration errors or failed uploads.
    - the archiver's status when archiving fails.
    """
    now = datetime.now(timezone.utc)
    try:
        config = load_config(
            now=now,
            overrides={
                "continue_on_duplicate": continue_on_duplicate,
                "publish_global": publish_global,
                "hook_type": hook_type,
                "scm_provider": scm_provider,
                "chef_app_attr": chef_app_attr,
                "url_affix": url_affix,
                "runlist": runlist,
            },
            extra_excludes=exclude,
        )
        store = ObjectStore.from_credentials(
            config.credentials, max_attempts=config.s3_max_attempts
        )
        publisher = BuildPublisher(
            config,
            store,
            notifier=Notifier(config) if notify else None,
            audit_log=AuditLog(config.audit_db_path) if config.audit_db_path else None,
            stash_paths=stash_path,
            message=message,
        )
        report = publisher.run(now)
    except FATAL_ERRORS as exc:
        raise fail(exc)

    print_report(report)


def print_report(report: PublishReport) -> None:
    ctx = report.context
    if report.status is PublishStatus.DUPLICATE:
        headline = "[bold yellow]Build already exists, reused.[/bold yellow]"
    else:
        headline = "[bold green]Build published![/bold green]"

    lines = [
        headline,
        "",
        f"[bold]Repository:[/bold] {ctx.repo_slug}",
        f"[bold]Commit:[/bold]     {ctx.commit}",
        f"[bold]Branch:[/bold]     {ctx.branch}",
        f"[bold]Location:[/bold]   {report.primary.uri}",
    ]
    if report.duplicate_source is not None:
        lines.append(f"[bold]Source:[/bold]     {report.duplicate_source.uri}")
    if report.artifact is not None:
        lines.append(f"[bold]Checksum:[/bold]   {report.artifact.checksum}")
        lines.append(f"[bold]ETag:[/bold]       {report.artifact.etag}")
    if report.tagged:
        lines.append(f"[bold]Tag:[/bold]        {ctx.tag_name}")
    for outcome in report.outcomes:
        mark = "[green]ok[/green]" if outcome.ok else "[red]failed[/red]"
        lines.append(f"  {outcome.channel}: {mark} [dim]{outcome.detail}[/dim]")

    console.print()
    console.print(
        Panel(
            "\n".join(lines),
            title="[bold]s3deploy[/bold]",
            border_style="yellow" if report.status is PublishStatus.DUPLICATE else "green",
            padding=(1, 2),
        )
    )
