"""Notifier: picks a sink for the run and delivers best-effort.

Sink choice:

* secure credentials available and a queue configured -> ``QueueSink``
* otherwise, a relay configured -> ``RelaySink``
* otherwise -> nothing to deliver to; the notice is skipped

No delivery failure ever escapes this module: every outcome is returned
as a :class:`SideEffectOutcome`.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from s3deploy.models.config import ResolvedConfig
from s3deploy.models.descriptor import DeploymentDescriptor
from s3deploy.models.outcomes import SideEffectOutcome
from s3deploy.notify.descriptor import render_body
from s3deploy.notify.sinks import BaseSink
from s3deploy.notify.sinks.queue import QueueSink
from s3deploy.notify.sinks.relay import BinaryRelaySink, RelaySink

logger = logging.getLogger(__name__)

_DELIVERY_ERRORS = (httpx.HTTPError, ClientError, BotoCoreError, KeyError, OSError)


class Notifier:
    """Delivers deployment descriptors for one run.

    Parameters
    ----------
    config:
        The resolved run configuration.
    queue_sink:
        Pre-built queue sink; created from the run's credentials if needed.
    http_client:
        ``httpx.Client`` shared by the relay sinks.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        *,
        queue_sink: QueueSink | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._queue_sink = queue_sink
        self._http_client = http_client

    def select_sink(self) -> BaseSink | None:
        ctx = self._config.context
        if ctx.secure_env and self._config.queue_name:
            if self._queue_sink is None:
                self._queue_sink = QueueSink.from_credentials(
                    self._config.credentials,
                    self._config.queue_name,
                    max_attempts=self._config.s3_max_attempts,
                )
            return self._queue_sink
        if self._config.relay.enabled:
            return RelaySink(self._config.relay, client=self._http_client)
        return None

    def notify(
        self, descriptor: DeploymentDescriptor, message: str | None = None
    ) -> SideEffectOutcome:
        """Send *descriptor* (or *message*) through the selected sink."""
        try:
            sink = self.select_sink()
        except BotoCoreError as exc:
            logger.error("Could not create queue client: %s", exc)
            return SideEffectOutcome.failure("queue", str(exc))
        if sink is None:
            logger.info("No queue or relay configured; skipping deployment notice")
            return SideEffectOutcome.success("notify", "skipped: no channel configured")

        body = render_body(descriptor, message)
        try:
            ref = sink.deliver(body)
        except _DELIVERY_ERRORS as exc:
            logger.error("Deployment notice via %s failed: %s", sink.sink_name, exc)
            return SideEffectOutcome.failure(sink.sink_name, str(exc))
        return SideEffectOutcome.success(sink.sink_name, ref)

    def wants_binary_relay(self) -> bool:
        relay = self._config.relay
        return (
            relay.enabled
            and bool(relay.binary_branch)
            and not self._config.context.secure_env
            and self._config.context.branch == relay.binary_branch
        )

    def relay_archive(self, archive: Path, key: str) -> SideEffectOutcome | None:
        """Post the archive bytes through the relay when this branch wants it.

        Returns ``None`` when the binary relay does not apply to this run.
        """
        if not self.wants_binary_relay():
            return None
        sink = BinaryRelaySink(self._config.relay, client=self._http_client)
        try:
            ref = sink.send_archive(archive, key)
        except _DELIVERY_ERRORS as exc:
            logger.error("Binary relay of %s failed: %s", archive, exc)
            return SideEffectOutcome.failure(sink.sink_name, str(exc))
        return SideEffectOutcome.success(sink.sink_name, ref)
