"""GELF-over-HTTP client façade.

Purpose
-------
Compose the builder, the HTTP transport, and the result broadcaster behind the
:class:`~lib_gelf_http.application.ports.client.GelfClientPort` contract. Every
send returns its :data:`~lib_gelf_http.domain.results.SendResult` and also
broadcasts it to subscribed observers.

Contents
--------
* :class:`GelfHttpClient` – production implementation of the base contract.

System Role
-----------
Composition root for host applications; the only module most callers import.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import httpx

from .adapters.http_transport import GelfHttpTransport
from .adapters.system import SystemClock, UuidProvider
from .adapters.tls import CertificateValidationHook
from .application.ports.certificates import CertificateStorePort
from .application.ports.client import GelfClientPort
from .application.ports.time import ClockPort, IdProvider
from .application.ports.transport import TransportPort
from .application.use_cases.reporting import ResultBroadcaster, Unsubscribe
from .domain.configuration import GraylogConfiguration
from .domain.gelf import GelfEntryBuilder, GelfLogEntry
from .domain.results import SendError, SendOutcome, SendResult, TlsValidationError

LOGGER = logging.getLogger(__name__)


class GelfHttpClient(GelfClientPort):
    """Send GELF records to Graylog over HTTP(S).

    Parameters
    ----------
    configuration:
        Immutable endpoint and security settings.
    host_name:
        Value of the GELF ``host`` field; defaults to the machine name.
    clock, id_provider:
        Ports supplying timestamps and correlation ids.
    certificate_store:
        Store used when ``client_certificate_name`` is configured.
    validation_hook:
        Optional server-certificate validation hook (see
        :func:`lib_gelf_http.adapters.tls.default_validation_hook`).
    transport:
        Replacement :class:`TransportPort`; defaults to :class:`GelfHttpTransport`.
    http_transport, async_http_transport:
        ``httpx`` transports forwarded to the default transport.

    Examples
    --------
    >>> import httpx
    >>> config = GraylogConfiguration(facility="auth", host="logs.local", use_compression=False)
    >>> client = GelfHttpClient(config, host_name="web01", http_transport=httpx.MockTransport(lambda request: httpx.Response(202)))
    >>> result = client.send("login failed", data={"user": "alice"}, correlation_id="op-1")
    >>> result.ok, result.correlation_id
    (True, 'op-1')
    """

    def __init__(
        self,
        configuration: GraylogConfiguration,
        *,
        host_name: str | None = None,
        clock: ClockPort | None = None,
        id_provider: IdProvider | None = None,
        certificate_store: CertificateStorePort | None = None,
        validation_hook: CertificateValidationHook | None = None,
        transport: TransportPort | None = None,
        http_transport: httpx.BaseTransport | None = None,
        async_http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._configuration = configuration
        self._clock: ClockPort = clock or SystemClock()
        self._ids: IdProvider = id_provider or UuidProvider()
        self._builder = GelfEntryBuilder(facility=configuration.facility, host=host_name, clock=self._clock.now)
        self._reports = ResultBroadcaster()
        self._transport: TransportPort = transport or GelfHttpTransport(
            configuration,
            certificate_store=certificate_store,
            validation_hook=validation_hook,
            on_tls_rejected=self._reports.publish_tls_error,
            transport=http_transport,
            async_transport=async_http_transport,
        )

    @property
    def configuration(self) -> GraylogConfiguration:
        return self._configuration

    def on_success(self, observer: Callable[[SendOutcome], None]) -> Unsubscribe:
        """Subscribe ``observer`` to successful deliveries; returns an unsubscribe callable."""
        return self._reports.subscribe_success(observer)

    def on_error(self, observer: Callable[[SendError], None]) -> Unsubscribe:
        """Subscribe ``observer`` to failed deliveries; returns an unsubscribe callable."""
        return self._reports.subscribe_error(observer)

    def on_tls_error(self, observer: Callable[[TlsValidationError], None]) -> Unsubscribe:
        """Subscribe ``observer`` to rejected server certificates."""
        return self._reports.subscribe_tls_error(observer)

    def create_entry(self, short_message: str, full_message: str | None = None, data: Any = None) -> GelfLogEntry:
        """Build the GELF record for inspection without sending it."""
        return self._builder.build(short_message, full_message, data)

    def send(
        self,
        short_message: str,
        full_message: str | None = None,
        data: Any = None,
        *,
        correlation_id: str | None = None,
    ) -> SendResult:
        """Build and deliver one record.

        Raises
        ------
        ValueError
            When ``short_message`` is blank or no facility is configured; no
            report is published in that case.
        """
        entry = self.create_entry(short_message, full_message, data)
        result = self._transport.deliver(entry, self._correlation(correlation_id))
        self._reports.publish(result)
        return result

    async def send_async(
        self,
        short_message: str,
        full_message: str | None = None,
        data: Any = None,
        *,
        correlation_id: str | None = None,
    ) -> SendResult:
        """Asynchronous variant of :meth:`send`."""
        entry = self.create_entry(short_message, full_message, data)
        result = await self._transport.deliver_async(entry, self._correlation(correlation_id))
        self._reports.publish(result)
        return result

    def send_raw(
        self,
        message_body: bytes,
        *,
        correlation_id: str | None = None,
        override: Mapping[str, Any] | None = None,
    ) -> SendResult:
        """Replay ``message_body`` captured from a previous :class:`SendError`.

        ``override`` holds configuration fields (for example ``{"host": "fallback"}``)
        applied to a copy of the configuration for this attempt only.
        """
        configuration = self._configuration.with_overrides(**dict(override or {}))
        result = self._transport.deliver_raw(message_body, self._correlation(correlation_id), configuration=configuration)
        self._reports.publish(result)
        return result

    async def send_raw_async(
        self,
        message_body: bytes,
        *,
        correlation_id: str | None = None,
        override: Mapping[str, Any] | None = None,
    ) -> SendResult:
        """Asynchronous variant of :meth:`send_raw`."""
        configuration = self._configuration.with_overrides(**dict(override or {}))
        result = await self._transport.deliver_raw_async(message_body, self._correlation(correlation_id), configuration=configuration)
        self._reports.publish(result)
        return result

    def _correlation(self, correlation_id: str | None) -> str:
        if correlation_id is not None:
            return str(correlation_id)
        generated = self._ids()
        LOGGER.debug("Generated correlation id %s", generated)
        return generated


__all__ = ["GelfHttpClient"]
