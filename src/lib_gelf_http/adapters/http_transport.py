"""HTTP(S) transport delivering GELF records to a Graylog ``/gelf`` input.

Purpose
-------
Execute one delivery attempt end to end: serialize, compress, resolve the
client certificate, POST, and classify the outcome. Faults raised after the
attempt has started never escape; they come back as
:class:`~lib_gelf_http.domain.results.SendError` values carrying the bytes that
were (or would have been) transmitted.

Contents
--------
* :class:`GelfHttpTransport` – synchronous and asynchronous
  :class:`~lib_gelf_http.application.ports.transport.TransportPort` built on
  ``httpx``.

System Role
-----------
Adapter layer. Holds no per-call mutable state: each attempt creates its own
``httpx`` client, so concurrent sends are safe.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import Callable
from typing import Any

import httpx

from lib_gelf_http.application.ports.certificates import CertificateStorePort
from lib_gelf_http.application.ports.transport import TransportPort
from lib_gelf_http.application.use_cases.payload import PreparedRequest, prepare_request
from lib_gelf_http.domain.configuration import GraylogConfiguration
from lib_gelf_http.domain.errors import GelfClientError, TlsValidationRejectedError
from lib_gelf_http.domain.gelf import GelfLogEntry
from lib_gelf_http.domain.results import SendError, SendOutcome, SendResult, TlsValidationError

from .tls import CertificateValidationHook, create_ssl_context, inspect_peer

LOGGER = logging.getLogger(__name__)

TLS_HANDSHAKE_EVENT = "connection.start_tls.complete"

_DELIVERY_FAULTS: tuple[type[BaseException], ...] = (
    GelfClientError,
    httpx.HTTPError,
    httpx.InvalidURL,
    OSError,
    ValueError,
)
# Everything that can go wrong between certificate resolution and the response.

_SERIALIZATION_FAULTS: tuple[type[BaseException], ...] = (TypeError, ValueError)


def _serialize(entry: GelfLogEntry) -> tuple[str, bytes]:
    content = entry.to_json()
    return content, content.encode("utf-8")


class GelfHttpTransport(TransportPort):
    """Deliver GELF payloads with ``httpx``.

    Parameters
    ----------
    configuration:
        Default configuration for every attempt; raw resends may pass another.
    certificate_store:
        Store used for ``client_certificate_name`` lookups.
    validation_hook:
        Optional callable deciding whether the server certificate is accepted.
        When set, the built-in verification is replaced by the hook.
    on_tls_rejected:
        Receives a :class:`TlsValidationError` whenever the hook rejects.
    transport, async_transport:
        ``httpx`` transports injected by tests or hosts (e.g. proxies).

    Examples
    --------
    >>> seen = []
    >>> def collector(request):
    ...     seen.append((request.url.path, request.headers["content-type"]))
    ...     return httpx.Response(202)
    >>> config = GraylogConfiguration(facility="auth", host="logs.local", use_compression=False)
    >>> transport = GelfHttpTransport(config, transport=httpx.MockTransport(collector))
    >>> result = transport.deliver_raw(b'{"short_message":"hi"}', "op-1")
    >>> result.ok, result.correlation_id, seen
    (True, 'op-1', [('/gelf', 'application/json; charset=UTF-8')])
    """

    def __init__(
        self,
        configuration: GraylogConfiguration,
        *,
        certificate_store: CertificateStorePort | None = None,
        validation_hook: CertificateValidationHook | None = None,
        on_tls_rejected: Callable[[TlsValidationError], None] | None = None,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._configuration = configuration
        self._certificate_store = certificate_store
        self._validation_hook = validation_hook
        self._on_tls_rejected = on_tls_rejected
        self._transport = transport
        self._async_transport = async_transport

    @property
    def configuration(self) -> GraylogConfiguration:
        return self._configuration

    def deliver(self, entry: GelfLogEntry, correlation_id: str) -> SendResult:
        """Serialize ``entry`` and send it synchronously."""
        try:
            content, payload = _serialize(entry)
        except _SERIALIZATION_FAULTS as exc:
            return self._unserializable(exc, correlation_id)
        return self._send(payload, correlation_id, content, self._configuration, raw=False)

    async def deliver_async(self, entry: GelfLogEntry, correlation_id: str) -> SendResult:
        """Serialize ``entry`` and send it without blocking the event loop."""
        try:
            content, payload = _serialize(entry)
        except _SERIALIZATION_FAULTS as exc:
            return self._unserializable(exc, correlation_id)
        return await self._send_async(payload, correlation_id, content, self._configuration, raw=False)

    def deliver_raw(
        self,
        body: bytes,
        correlation_id: str,
        *,
        configuration: GraylogConfiguration | None = None,
    ) -> SendResult:
        """Send previously captured ``body``; ``message_content`` is ``None``."""
        return self._send(bytes(body), correlation_id, None, configuration or self._configuration, raw=True)

    async def deliver_raw_async(
        self,
        body: bytes,
        correlation_id: str,
        *,
        configuration: GraylogConfiguration | None = None,
    ) -> SendResult:
        """Asynchronous variant of :meth:`deliver_raw`."""
        return await self._send_async(bytes(body), correlation_id, None, configuration or self._configuration, raw=True)

    def _send(
        self,
        payload: bytes,
        correlation_id: str,
        content: str | None,
        configuration: GraylogConfiguration,
        *,
        raw: bool,
    ) -> SendResult:
        request = prepare_request(payload, configuration, raw=raw)
        LOGGER.debug("Sending GELF payload %s to %s (%d bytes)", correlation_id, request.url, len(request.body))
        try:
            context = self._ssl_context(configuration)
            with httpx.Client(verify=context, transport=self._transport, **self._timeout_kwargs(configuration)) as client:
                response = client.post(
                    request.url,
                    content=request.body,
                    headers=dict(request.headers),
                    extensions=self._extensions(configuration, correlation_id),
                )
                response.raise_for_status()
        except _DELIVERY_FAULTS as exc:
            return self._failure(exc, request, correlation_id, content)
        return self._success(request, correlation_id, content)

    async def _send_async(
        self,
        payload: bytes,
        correlation_id: str,
        content: str | None,
        configuration: GraylogConfiguration,
        *,
        raw: bool,
    ) -> SendResult:
        request = prepare_request(payload, configuration, raw=raw)
        LOGGER.debug("Sending GELF payload %s to %s (%d bytes)", correlation_id, request.url, len(request.body))
        try:
            context = await asyncio.to_thread(self._ssl_context, configuration)
            async with httpx.AsyncClient(verify=context, transport=self._async_transport, **self._timeout_kwargs(configuration)) as client:
                response = await client.post(
                    request.url,
                    content=request.body,
                    headers=dict(request.headers),
                    extensions=self._async_extensions(configuration, correlation_id),
                )
                response.raise_for_status()
        except _DELIVERY_FAULTS as exc:
            return self._failure(exc, request, correlation_id, content)
        return self._success(request, correlation_id, content)

    def _ssl_context(self, configuration: GraylogConfiguration) -> ssl.SSLContext:
        return create_ssl_context(
            configuration,
            certificate_store=self._certificate_store,
            verify_server=self._validation_hook is None,
        )

    @staticmethod
    def _timeout_kwargs(configuration: GraylogConfiguration) -> dict[str, Any]:
        timeout = configuration.timeout
        if timeout is None:
            return {}
        return {"timeout": httpx.Timeout(timeout)}

    def _extensions(self, configuration: GraylogConfiguration, correlation_id: str) -> dict[str, Any]:
        if self._validation_hook is None or not configuration.use_ssl:
            return {}

        def trace(event_name: str, info: dict[str, Any]) -> None:
            if event_name != TLS_HANDSHAKE_EVENT:
                return
            stream = info.get("return_value")
            try:
                self._check_peer(stream, configuration.host, correlation_id)
            except TlsValidationRejectedError:
                if stream is not None:
                    stream.close()
                raise

        return {"trace": trace}

    def _async_extensions(self, configuration: GraylogConfiguration, correlation_id: str) -> dict[str, Any]:
        if self._validation_hook is None or not configuration.use_ssl:
            return {}

        async def trace(event_name: str, info: dict[str, Any]) -> None:
            if event_name != TLS_HANDSHAKE_EVENT:
                return
            stream = info.get("return_value")
            try:
                self._check_peer(stream, configuration.host, correlation_id)
            except TlsValidationRejectedError:
                if stream is not None:
                    await stream.aclose()
                raise

        return {"trace": trace}

    def _check_peer(self, stream: Any, host: str, correlation_id: str) -> None:
        """Run the validation hook; raise when it rejects the server certificate."""
        hook = self._validation_hook
        ssl_object = stream.get_extra_info("ssl_object") if stream is not None else None
        peer = inspect_peer(ssl_object, host)
        if hook is None or hook(peer):
            return
        LOGGER.warning("Server certificate for %s rejected (errors=%s)", host, peer.errors)
        if self._on_tls_rejected is not None:
            self._on_tls_rejected(
                TlsValidationError(
                    host=host,
                    certificate=peer.certificate,
                    chain=peer.chain,
                    errors=peer.errors,
                    correlation_id=correlation_id,
                )
            )
        raise TlsValidationRejectedError(host)

    @staticmethod
    def _unserializable(exc: BaseException, correlation_id: str) -> SendError:
        LOGGER.warning("GELF delivery %s failed before sending: %s", correlation_id, exc)
        return SendError(correlation_id=correlation_id, message_content=None, message_body=b"", fault=exc)

    @staticmethod
    def _failure(exc: BaseException, request: PreparedRequest, correlation_id: str, content: str | None) -> SendError:
        LOGGER.warning("GELF delivery %s to %s failed: %s", correlation_id, request.url, exc)
        return SendError(correlation_id=correlation_id, message_content=content, message_body=request.body, fault=exc)

    @staticmethod
    def _success(request: PreparedRequest, correlation_id: str, content: str | None) -> SendOutcome:
        LOGGER.debug("GELF delivery %s to %s succeeded", correlation_id, request.url)
        return SendOutcome(correlation_id=correlation_id, message_content=content, message_body=request.body)


__all__ = ["GelfHttpTransport", "TLS_HANDSHAKE_EVENT"]
