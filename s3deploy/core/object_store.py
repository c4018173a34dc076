"""Object-store adapter over a boto3 S3 client.

Only the handful of calls the publisher needs: existence queries, single
uploads and server-side copies. Existence queries never raise; they
report whether the object was found, confirmed absent, or whether the
query itself failed, so callers can log the three cases differently.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel, ConfigDict

from s3deploy.models.config import AwsCredentials
from s3deploy.models.targets import TargetLocation

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


class ObjectStoreError(RuntimeError):
    """Raised when an upload or copy fails."""


class ExistenceStatus(str, Enum):
    FOUND = "found"
    ABSENT = "absent"
    FAILED = "failed"


class HeadResult(BaseModel):
    """Outcome of a HEAD-style existence query."""

    model_config = ConfigDict(frozen=True)

    location: TargetLocation
    status: ExistenceStatus
    metadata: dict[str, str] = {}
    etag: str = ""
    size_bytes: int = 0
    error: str = ""

    @property
    def found(self) -> bool:
        return self.status is ExistenceStatus.FOUND


def _strip_etag(etag: str) -> str:
    return etag.strip('"')


class ObjectStore:
    """Thin wrapper around an S3 client.

    Parameters
    ----------
    client:
        A boto3 S3 client (or anything with the same call signatures).
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_credentials(
        cls, credentials: AwsCredentials, *, max_attempts: int = 3
    ) -> ObjectStore:
        client = boto3.client(
            "s3",
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key.get_secret_value(),
            region_name=credentials.region,
            config=BotoConfig(retries={"max_attempts": max_attempts, "mode": "standard"}),
        )
        return cls(client)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def head(self, location: TargetLocation) -> HeadResult:
        """Query whether *location* exists. Never raises."""
        try:
            resp = self._client.head_object(Bucket=location.bucket, Key=location.key)
        except ClientError as exc:
            error = exc.response.get("Error", {})
            http_status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
            if str(error.get("Code", "")) in _NOT_FOUND_CODES or http_status == 404:
                logger.debug("HEAD %s: absent", location)
                return HeadResult(location=location, status=ExistenceStatus.ABSENT)
            logger.warning("HEAD %s failed: %s", location, exc)
            return HeadResult(
                location=location, status=ExistenceStatus.FAILED, error=str(exc)
            )
        except BotoCoreError as exc:
            logger.warning("HEAD %s failed: %s", location, exc)
            return HeadResult(
                location=location, status=ExistenceStatus.FAILED, error=str(exc)
            )

        logger.debug("HEAD %s: found", location)
        return HeadResult(
            location=location,
            status=ExistenceStatus.FOUND,
            metadata=dict(resp.get("Metadata") or {}),
            etag=_strip_etag(resp.get("ETag", "")),
            size_bytes=int(resp.get("ContentLength", 0) or 0),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put_file(
        self,
        path: Path,
        location: TargetLocation,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Upload a local file and return the entity tag the store assigned."""
        try:
            with Path(path).open("rb") as body:
                resp = self._client.put_object(
                    Bucket=location.bucket,
                    Key=location.key,
                    Body=body,
                    ACL=location.acl.value,
                    Metadata=metadata or {},
                )
        except (ClientError, BotoCoreError) as exc:
            raise ObjectStoreError(f"Upload of {path} to {location} failed: {exc}") from exc
        etag = _strip_etag(resp.get("ETag", ""))
        logger.info("Uploaded %s to %s (etag=%s)", path, location, etag)
        return etag

    def copy(self, source: TargetLocation, destination: TargetLocation) -> str:
        """Server-side copy, preserving the source object's metadata."""
        try:
            resp = self._client.copy_object(
                Bucket=destination.bucket,
                Key=destination.key,
                CopySource={"Bucket": source.bucket, "Key": source.key},
                ACL=destination.acl.value,
                MetadataDirective="COPY",
            )
        except (ClientError, BotoCoreError) as exc:
            raise ObjectStoreError(f"Copy {source} -> {destination} failed: {exc}") from exc
        etag = _strip_etag(resp.get("CopyObjectResult", {}).get("ETag", ""))
        logger.info("Copied %s -> %s", source, destination)
        return etag
