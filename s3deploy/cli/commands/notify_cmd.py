"""``s3deploy notify``: send the deployment descriptor on its own.

Notification is best-effort: a failed delivery is reported but the
command still exits 0.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import typer
from rich.console import Console

from s3deploy.cli._common import FATAL_ERRORS, fail, load_config
from s3deploy.notify.descriptor import build_descriptor
from s3deploy.notify.notifier import Notifier

console = Console()


def notify_cmd(
    message: Optional[str] = typer.Option(
        None, "--message", "-m", help="Free-form body replacing the JSON descriptor."
    ),
    hook_type: Optional[str] = typer.Option(None, help="Descriptor hook_type."),
    scm_provider: Optional[str] = typer.Option(None, help="Source-control provider label."),
    chef_app_attr: Optional[str] = typer.Option(None, help="Deployment attribute name."),
    url_affix: Optional[str] = typer.Option(None, help="URL affix token."),
    runlist: Optional[str] = typer.Option(None, help="Deployment runlist."),
) -> None:
    """Build the deployment descriptor and deliver it downstream."""
    try:
        config = load_config(
            overrides={
                "hook_type": hook_type,
                "scm_provider": scm_provider,
                "chef_app_attr": chef_app_attr,
                "url_affix": url_affix,
                "runlist": runlist,
            }
        )
    except FATAL_ERRORS as exc:
        raise fail(exc)

    descriptor = build_descriptor(config, datetime.now(timezone.utc))
    outcome = Notifier(config).notify(descriptor, message)
    if outcome.ok:
        console.print(f"[green]Notice sent via {outcome.channel}[/green] [dim]{outcome.detail}[/dim]")
    else:
        console.print(f"[yellow]Notice via {outcome.channel} failed:[/yellow] {outcome.detail}")
