"""Tests for the boto3-backed object-store adapter."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from s3deploy.core.object_store import ExistenceStatus, ObjectStore, ObjectStoreError
from s3deploy.models.targets import Acl, TargetLocation

LOC = TargetLocation(bucket="b", key="widget/master/latest.tar.gz")


def _client_error(code: str, status: int, op: str = "HeadObject") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": "msg"}, "ResponseMetadata": {"HTTPStatusCode": status}},
        op,
    )


class TestHead:
    def test_found(self):
        client = MagicMock()
        client.head_object.return_value = {
            "ETag": '"abc"',
            "ContentLength": 12,
            "Metadata": {"revision": "deadbeef"},
        }
        result = ObjectStore(client).head(LOC)
        assert result.status is ExistenceStatus.FOUND
        assert result.found
        assert result.etag == "abc"
        assert result.size_bytes == 12
        assert result.metadata == {"revision": "deadbeef"}
        client.head_object.assert_called_once_with(Bucket="b", Key=LOC.key)

    def test_absent(self):
        client = MagicMock()
        client.head_object.side_effect = _client_error("404", 404)
        result = ObjectStore(client).head(LOC)
        assert result.status is ExistenceStatus.ABSENT
        assert not result.found

    def test_access_denied_is_failed(self):
        client = MagicMock()
        client.head_object.side_effect = _client_error("403", 403)
        result = ObjectStore(client).head(LOC)
        assert result.status is ExistenceStatus.FAILED
        assert result.error

    def test_transport_error_is_failed(self):
        client = MagicMock()
        client.head_object.side_effect = EndpointConnectionError(endpoint_url="https://s3")
        result = ObjectStore(client).head(LOC)
        assert result.status is ExistenceStatus.FAILED


class TestWrites:
    def test_put_file(self, tmp_path):
        archive = tmp_path / "a.tar.gz"
        archive.write_bytes(b"data")
        client = MagicMock()
        client.put_object.return_value = {"ETag": '"e1"'}
        location = TargetLocation(bucket="b", key="k", acl=Acl.PUBLIC_READ)

        etag = ObjectStore(client).put_file(archive, location, metadata={"revision": "r"})

        assert etag == "e1"
        kwargs = client.put_object.call_args.kwargs
        assert kwargs["Bucket"] == "b"
        assert kwargs["Key"] == "k"
        assert kwargs["ACL"] == "public-read"
        assert kwargs["Metadata"] == {"revision": "r"}

    def test_put_file_failure_raises(self, tmp_path):
        archive = tmp_path / "a.tar.gz"
        archive.write_bytes(b"data")
        client = MagicMock()
        client.put_object.side_effect = _client_error("AccessDenied", 403, "PutObject")
        with pytest.raises(ObjectStoreError, match="Upload"):
            ObjectStore(client).put_file(archive, LOC)

    def test_copy_preserves_metadata(self):
        client = MagicMock()
        client.copy_object.return_value = {"CopyObjectResult": {"ETag": '"c1"'}}
        source = TargetLocation(bucket="b", key="src")

        etag = ObjectStore(client).copy(source, LOC)

        assert etag == "c1"
        kwargs = client.copy_object.call_args.kwargs
        assert kwargs["CopySource"] == {"Bucket": "b", "Key": "src"}
        assert kwargs["Key"] == LOC.key
        assert kwargs["MetadataDirective"] == "COPY"

    def test_copy_failure_raises(self):
        client = MagicMock()
        client.copy_object.side_effect = _client_error("NoSuchKey", 404, "CopyObject")
        with pytest.raises(ObjectStoreError, match="Copy"):
            ObjectStore(client).copy(TargetLocation(bucket="b", key="src"), LOC)
