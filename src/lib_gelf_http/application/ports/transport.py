"""Port describing a GELF delivery transport."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_gelf_http.domain.configuration import GraylogConfiguration
from lib_gelf_http.domain.gelf import GelfLogEntry
from lib_gelf_http.domain.results import SendResult


@runtime_checkable
class TransportPort(Protocol):
    """Deliver one record (or replay raw bytes) and classify the outcome.

    Implementations never raise once delivery has started; every fault ends
    up in the returned :class:`~lib_gelf_http.domain.results.SendError`.
    """

    def deliver(self, entry: GelfLogEntry, correlation_id: str) -> SendResult:
        """Serialize and send ``entry``."""

    async def deliver_async(self, entry: GelfLogEntry, correlation_id: str) -> SendResult:
        """Suspending variant of :meth:`deliver`."""

    def deliver_raw(
        self,
        body: bytes,
        correlation_id: str,
        *,
        configuration: GraylogConfiguration | None = None,
    ) -> SendResult:
        """Send previously captured bytes, optionally against another configuration."""

    async def deliver_raw_async(
        self,
        body: bytes,
        correlation_id: str,
        *,
        configuration: GraylogConfiguration | None = None,
    ) -> SendResult:
        """Suspending variant of :meth:`deliver_raw`."""


__all__ = ["TransportPort"]
