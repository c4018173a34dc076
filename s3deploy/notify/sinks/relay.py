"""HTTP relay sinks: deliver through a relay endpoint with httpx.

``RelaySink`` posts the JSON descriptor; ``BinaryRelaySink`` posts raw
archive bytes with the destination key in a header. Basic authentication
is sent only when both a username and a password are configured.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from s3deploy.models.config import RelayConfig

logger = logging.getLogger(__name__)

NOTIFY_PATH = "notify"
UPLOAD_PATH = "upload"
KEY_HEADER = "X-S3D-Key"


def _join(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path}"


def _auth(relay: RelayConfig) -> tuple[str, str] | None:
    if not relay.has_basic_auth:
        return None
    return relay.username, relay.password.get_secret_value()


class RelaySink:
    """Posts the descriptor to ``<relay>/notify``.

    Parameters
    ----------
    relay:
        Relay URL, credentials and timeout.
    client:
        Optional ``httpx.Client``; one is created per delivery otherwise.
    """

    def __init__(self, relay: RelayConfig, client: httpx.Client | None = None) -> None:
        self._relay = relay
        self._client = client

    @property
    def sink_name(self) -> str:
        return "relay"

    def deliver(self, body: str) -> str:
        url = _join(self._relay.url, NOTIFY_PATH)
        kwargs = {
            "content": body.encode("utf-8"),
            "headers": {"Content-Type": "application/json"},
            "auth": _auth(self._relay),
            "timeout": self._relay.timeout,
        }
        if self._client is not None:
            response = self._client.post(url, **kwargs)
        else:
            with httpx.Client() as client:
                response = client.post(url, **kwargs)
        response.raise_for_status()
        logger.info("Relayed deployment notice to %s (%d)", url, response.status_code)
        return str(response.status_code)


class BinaryRelaySink:
    """Posts archive bytes to ``<relay>/upload`` with the key in a header."""

    def __init__(self, relay: RelayConfig, client: httpx.Client | None = None) -> None:
        self._relay = relay
        self._client = client

    @property
    def sink_name(self) -> str:
        return "binary_relay"

    def send_archive(self, archive: Path, key: str) -> str:
        url = _join(self._relay.url, UPLOAD_PATH)
        kwargs = {
            "content": Path(archive).read_bytes(),
            "headers": {"Content-Type": "application/gzip", KEY_HEADER: key},
            "auth": _auth(self._relay),
            "timeout": self._relay.timeout,
        }
        if self._client is not None:
            response = self._client.post(url, **kwargs)
        else:
            with httpx.Client() as client:
                response = client.post(url, **kwargs)
        response.raise_for_status()
        logger.info("Relayed archive %s as %s (%d)", archive, key, response.status_code)
        return str(response.status_code)
