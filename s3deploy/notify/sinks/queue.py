"""Message-queue sink: sends the descriptor to an SQS queue by name."""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config as BotoConfig

from s3deploy.models.config import AwsCredentials

logger = logging.getLogger(__name__)


class QueueSink:
    """Resolves the queue URL by name, then sends one message.

    Parameters
    ----------
    client:
        A boto3 SQS client.
    queue_name:
        Name of the queue; resolved to a URL on first delivery.
    """

    def __init__(self, client: Any, queue_name: str) -> None:
        self._client = client
        self._queue_name = queue_name
        self._queue_url: str | None = None

    @classmethod
    def from_credentials(
        cls, credentials: AwsCredentials, queue_name: str, *, max_attempts: int = 3
    ) -> QueueSink:
        client = boto3.client(
            "sqs",
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key.get_secret_value(),
            region_name=credentials.region,
            config=BotoConfig(retries={"max_attempts": max_attempts, "mode": "standard"}),
        )
        return cls(client, queue_name)

    @property
    def sink_name(self) -> str:
        return "queue"

    def queue_url(self) -> str:
        if self._queue_url is None:
            resp = self._client.get_queue_url(QueueName=self._queue_name)
            self._queue_url = resp["QueueUrl"]
        return self._queue_url

    def deliver(self, body: str) -> str:
        resp = self._client.send_message(QueueUrl=self.queue_url(), MessageBody=body)
        message_id = resp.get("MessageId", "")
        logger.info("Queued deployment notice on %s (id=%s)", self._queue_name, message_id)
        return message_id
