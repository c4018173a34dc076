"""Deployment descriptor construction."""

from __future__ import annotations

import json
from datetime import datetime

from s3deploy.core.metadata_record import build_metadata_record
from s3deploy.models.config import ResolvedConfig
from s3deploy.models.descriptor import DeploymentDescriptor, RoutingHints


def build_descriptor(
    config: ResolvedConfig, now: datetime, hints: RoutingHints | None = None
) -> DeploymentDescriptor:
    """The metadata record for this run plus routing hints."""
    hints = hints or config.hints
    record = build_metadata_record(config, now)
    return DeploymentDescriptor(
        **record.model_dump(),
        hook_type=hints.hook_type,
        chef_app_attr=hints.chef_app_attr,
        url_affix=hints.url_affix,
        runlist=hints.runlist,
        scm_provider=hints.scm_provider,
    )


def render_body(descriptor: DeploymentDescriptor, message: str | None = None) -> str:
    """The notification body: *message* verbatim if given, else the JSON."""
    if message:
        return message
    return json.dumps(descriptor.model_dump(mode="json"), sort_keys=True)
