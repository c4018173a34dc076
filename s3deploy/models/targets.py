"""Target locations: where an artifact is, or will be, stored."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Acl(str, Enum):
    """Canned access-control settings accepted by the object store."""

    PRIVATE = "private"
    PUBLIC_READ = "public-read"
    AUTHENTICATED_READ = "authenticated-read"
    BUCKET_OWNER_READ = "bucket-owner-read"
    BUCKET_OWNER_FULL_CONTROL = "bucket-owner-full-control"


class TargetLocation(BaseModel):
    """A (bucket, key, acl) triple."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str
    acl: Acl = Acl.PRIVATE

    @property
    def uri(self) -> str:
        return f"s3://{self.bucket}/{self.key}"

    @property
    def prefix_uri(self) -> str:
        """The ``s3://`` URI of the directory holding this key."""
        directory = self.key.rsplit("/", 1)[0] if "/" in self.key else ""
        return f"s3://{self.bucket}/{directory}"

    def same_object(self, other: TargetLocation) -> bool:
        return self.bucket == other.bucket and self.key == other.key

    def __str__(self) -> str:
        return self.uri
