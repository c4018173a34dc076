"""Metadata record and deployment descriptor payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class MetadataRecord(BaseModel):
    """The ``.s3d`` document written alongside the build."""

    model_config = ConfigDict(frozen=True)

    repo_url: str
    repo_owner: str
    repo_name: str
    repo_slug: str
    revision: str
    branch: str
    build_number: str
    pull_request: str
    s3_prefix: str
    timestamp: int  # UNIX seconds


class RoutingHints(BaseModel):
    """Optional caller-supplied hints for downstream deployment tooling."""

    model_config = ConfigDict(frozen=True)

    hook_type: str = "s3deploy"
    scm_provider: str = "github"
    chef_app_attr: str = ""
    url_affix: str = ""
    runlist: str = ""


class DeploymentDescriptor(MetadataRecord):
    """Outbound notification: the metadata record plus routing hints."""

    hook_type: str
    chef_app_attr: str = ""
    url_affix: str = ""
    runlist: str = ""
    scm_provider: str = "github"
