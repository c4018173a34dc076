"""Build artifact models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from s3deploy.models.targets import TargetLocation


class Artifact(BaseModel):
    """The compressed archive of the build directory at one commit.

    ``checksum`` is the SHA-256 hex digest of the archive bytes. ``etag``
    and ``location`` are filled in once the archive has been uploaded.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    checksum: str
    size_bytes: int = 0
    etag: str = ""
    location: TargetLocation | None = None

    @property
    def uploaded(self) -> bool:
        return self.location is not None
