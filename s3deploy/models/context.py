"""Run context: the identity of a single CI invocation."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

NOT_A_PULL_REQUEST = "false"


class RunContext(BaseModel):
    """Repository, commit and build identity for one CI job.

    Populated once by the resolver. Later stages never mutate it; the
    pipeline derives a new copy (``model_copy``) when it needs to record
    that the build already exists.
    """

    model_config = ConfigDict(frozen=True)

    repo_slug: str
    repo_owner: str
    repo_name: str
    commit: str
    branch: str
    build_number: str = ""
    pull_request: str = NOT_A_PULL_REQUEST
    tag_name: str = ""
    secure_env: bool = False
    build_exists: bool = False

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request not in ("", NOT_A_PULL_REQUEST)

    @property
    def repo_url(self) -> str:
        return f"https://github.com/{self.repo_slug}"
