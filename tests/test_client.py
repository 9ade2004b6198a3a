from __future__ import annotations

import asyncio
import gzip
from pathlib import Path
from typing import Any

import httpx
import pytest

from lib_gelf_http import GelfHttpClient, GraylogConfiguration, SendError, SendOutcome
from lib_gelf_http.domain.errors import FaultKind


def _client(config: GraylogConfiguration, handler: Any, clock: Any, ids: Any) -> GelfHttpClient:
    return GelfHttpClient(
        config,
        host_name="web01",
        clock=clock,
        id_provider=ids,
        http_transport=httpx.MockTransport(handler),
        async_http_transport=httpx.MockTransport(handler),
    )


def _refuse(request: httpx.Request) -> httpx.Response:
    if request.url.host == "fallback":
        return httpx.Response(202)
    raise httpx.ConnectError("connection refused", request=request)


def test_login_failed_is_delivered_and_reported(handler: Any, clock: Any, ids: Any) -> None:
    config = GraylogConfiguration(facility="auth", host="logs.example.test", use_compression=False)
    client = _client(config, handler, clock, ids)
    successes: list[SendOutcome] = []
    errors: list[SendError] = []
    client.on_success(successes.append)
    client.on_error(errors.append)

    result = client.send("login failed", data={"user": "alice"}, correlation_id="op-1")

    assert result.ok
    assert successes == [result]
    assert errors == []
    payload = handler.json()
    assert payload["_facility"] == "auth"
    assert payload["_user"] == "alice"
    assert payload["short_message"] == "login failed"
    assert payload["host"] == "web01"
    assert result.message_content == handler.requests[0].content.decode("utf-8")


def test_compressed_login_failed_reports_wire_bytes(handler: Any, clock: Any, ids: Any) -> None:
    client = _client(GraylogConfiguration(facility="auth"), handler, clock, ids)

    result = client.send("login failed", data={"user": "alice"}, correlation_id="op-1")

    assert result.message_body == handler.requests[0].content
    assert gzip.decompress(result.message_body).decode("utf-8") == result.message_content


def test_connection_failure_reports_exactly_once(make_handler: Any, clock: Any, ids: Any) -> None:
    client = _client(GraylogConfiguration(facility="auth", host="primary"), make_handler(_refuse), clock, ids)
    errors: list[SendError] = []
    successes: list[SendOutcome] = []
    client.on_error(errors.append)
    client.on_success(successes.append)

    result = client.send("login failed")

    assert isinstance(result, SendError)
    assert result.fault_kind is FaultKind.CONNECTION
    assert result.correlation_id == "generated-1"
    assert errors == [result]
    assert successes == []


def test_failed_body_can_be_resent_to_fallback(make_handler: Any, clock: Any, ids: Any) -> None:
    handler = make_handler(_refuse)
    client = _client(GraylogConfiguration(facility="auth", host="primary"), handler, clock, ids)

    failed = client.send("login failed", correlation_id="op-1")
    assert isinstance(failed, SendError)

    retried = client.send_raw(failed.message_body, correlation_id=failed.correlation_id, override={"host": "fallback"})

    assert retried.ok
    assert retried.correlation_id == "op-1"
    assert retried.message_content is None
    assert [request.url.host for request in handler.requests] == ["primary", "fallback"]
    assert handler.requests[1].content == failed.message_body
    assert client.configuration.host == "primary"


def test_conflicting_certificate_sources_fail_without_network(handler: Any, clock: Any, ids: Any, client_pem: Path) -> None:
    config = GraylogConfiguration(
        facility="auth",
        use_ssl=True,
        client_certificate_path=str(client_pem),
        client_certificate_name="gelf-client",
    )
    client = _client(config, handler, clock, ids)
    errors: list[SendError] = []
    client.on_error(errors.append)

    result = client.send("login failed", correlation_id="op-1")

    assert isinstance(result, SendError)
    assert result.fault_kind is FaultKind.CONFIGURATION
    assert errors == [result]
    assert handler.calls == 0


@pytest.mark.parametrize("short_message", ["", "   "])
def test_blank_short_message_is_rejected_before_sending(handler: Any, clock: Any, ids: Any, short_message: str) -> None:
    client = _client(GraylogConfiguration(facility="auth"), handler, clock, ids)
    reports: list[object] = []
    client.on_success(reports.append)
    client.on_error(reports.append)

    with pytest.raises(ValueError):
        client.send(short_message)

    assert reports == []
    assert handler.calls == 0


def test_missing_facility_is_rejected(handler: Any, clock: Any, ids: Any) -> None:
    client = _client(GraylogConfiguration(), handler, clock, ids)

    with pytest.raises(ValueError, match="facility"):
        client.send("hello")


def test_observer_failures_do_not_affect_the_result(handler: Any, clock: Any, ids: Any) -> None:
    client = _client(GraylogConfiguration(facility="auth"), handler, clock, ids)

    def explode(_: SendOutcome) -> None:
        raise RuntimeError("observer bug")

    client.on_success(explode)

    assert client.send("hello").ok


def test_unsubscribed_observers_are_not_called(handler: Any, clock: Any, ids: Any) -> None:
    client = _client(GraylogConfiguration(facility="auth"), handler, clock, ids)
    seen: list[SendOutcome] = []
    unsubscribe = client.on_success(seen.append)

    unsubscribe()
    client.send("hello")

    assert seen == []


def test_async_send_and_resend(make_handler: Any, clock: Any, ids: Any) -> None:
    client = _client(GraylogConfiguration(facility="auth", host="primary"), make_handler(_refuse), clock, ids)
    errors: list[SendError] = []
    client.on_error(errors.append)

    async def scenario() -> tuple[Any, Any]:
        failed = await client.send_async("login failed", data="raw context")
        retried = await client.send_raw_async(failed.message_body, override={"host": "fallback"})
        return failed, retried

    failed, retried = asyncio.run(scenario())

    assert isinstance(failed, SendError)
    assert retried.ok
    assert errors == [failed]
    assert (failed.correlation_id, retried.correlation_id) == ("generated-1", "generated-2")


def test_concurrent_async_sends_keep_their_correlation_ids(handler: Any, clock: Any, ids: Any) -> None:
    client = _client(GraylogConfiguration(facility="auth"), handler, clock, ids)

    async def scenario() -> list[Any]:
        return await asyncio.gather(*(client.send_async(f"message {index}", correlation_id=f"op-{index}") for index in range(5)))

    results = asyncio.run(scenario())

    assert [result.correlation_id for result in results] == [f"op-{index}" for index in range(5)]
    assert all(result.ok for result in results)


def test_create_entry_matches_sent_payload(handler: Any, clock: Any, ids: Any) -> None:
    client = _client(GraylogConfiguration(facility="auth", use_compression=False), handler, clock, ids)

    entry = client.create_entry("hello", "full text", {"user": "alice"})
    result = client.send("hello", "full text", {"user": "alice"})

    assert result.message_content == entry.to_json()


def test_lone_surrogate_text_is_delivered_not_raised(handler: Any, clock: Any, ids: Any) -> None:
    client = _client(GraylogConfiguration(facility="auth"), handler, clock, ids)
    errors: list[SendError] = []
    client.on_error(errors.append)

    result = client.send("bad \udcff name", data={"path": "/var/log/\udcfe"}, correlation_id="op-1")

    assert result.ok
    assert errors == []
    assert handler.json()["short_message"] == "bad \udcff name"
    assert handler.json()["_path"] == "/var/log/\udcfe"
