"""Sink protocol for deployment notifications.

Every sink exposes a ``sink_name`` and a ``deliver(body)`` method. Sinks
may raise; the :class:`~s3deploy.notify.notifier.Notifier` turns failures
into best-effort outcomes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class BaseSink(Protocol):
    """Protocol that every notification sink implements."""

    @property
    def sink_name(self) -> str:
        """Return the unique name of this sink."""
        ...

    def deliver(self, body: str) -> str:
        """Deliver *body* and return a short delivery reference."""
        ...
