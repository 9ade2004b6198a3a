"""Base client contract shared by every GELF transport implementation."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from lib_gelf_http.domain.gelf import GelfLogEntry
from lib_gelf_http.domain.results import SendResult


@runtime_checkable
class GelfClientPort(Protocol):
    """Operations host applications depend on.

    Every send accepts an optional ``correlation_id``; when omitted the client
    generates one and threads it through to the resulting report.
    """

    def create_entry(self, short_message: str, full_message: str | None = None, data: Any = None) -> GelfLogEntry:
        """Build the GELF record without sending it."""

    def send(
        self,
        short_message: str,
        full_message: str | None = None,
        data: Any = None,
        *,
        correlation_id: str | None = None,
    ) -> SendResult:
        """Build and deliver one record."""

    async def send_async(
        self,
        short_message: str,
        full_message: str | None = None,
        data: Any = None,
        *,
        correlation_id: str | None = None,
    ) -> SendResult:
        """Suspending variant of :meth:`send`."""

    def send_raw(
        self,
        message_body: bytes,
        *,
        correlation_id: str | None = None,
        override: Mapping[str, Any] | None = None,
    ) -> SendResult:
        """Replay a message body captured from a previous :class:`SendError`."""

    async def send_raw_async(
        self,
        message_body: bytes,
        *,
        correlation_id: str | None = None,
        override: Mapping[str, Any] | None = None,
    ) -> SendResult:
        """Suspending variant of :meth:`send_raw`."""


__all__ = ["GelfClientPort"]
