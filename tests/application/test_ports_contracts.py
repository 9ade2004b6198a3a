from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path

import pytest

from lib_gelf_http.adapters import DirectoryCertificateStore, GelfHttpTransport, SystemClock, UuidProvider
from lib_gelf_http.application.ports.certificates import CertificateStorePort, StoredCertificate
from lib_gelf_http.application.ports.client import GelfClientPort
from lib_gelf_http.application.ports.time import ClockPort, IdProvider
from lib_gelf_http.application.ports.transport import TransportPort
from lib_gelf_http.client import GelfHttpClient
from lib_gelf_http.domain.configuration import GraylogConfiguration
from lib_gelf_http.domain.gelf import GelfLogEntry
from lib_gelf_http.domain.results import SendOutcome, SendResult


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def record(self, name: str, **payload) -> None:
        self.calls.append((name, payload))


class _FakeTransport(TransportPort):
    def __init__(self, recorder: _Recorder) -> None:
        self.recorder = recorder

    def deliver(self, entry: GelfLogEntry, correlation_id: str) -> SendResult:
        self.recorder.record("deliver", entry=entry, correlation_id=correlation_id)
        content = entry.to_json()
        return SendOutcome(correlation_id, content, content.encode("utf-8"))

    async def deliver_async(self, entry: GelfLogEntry, correlation_id: str) -> SendResult:
        self.recorder.record("deliver_async", entry=entry, correlation_id=correlation_id)
        content = entry.to_json()
        return SendOutcome(correlation_id, content, content.encode("utf-8"))

    def deliver_raw(self, body: bytes, correlation_id: str, *, configuration: GraylogConfiguration | None = None) -> SendResult:
        self.recorder.record("deliver_raw", body=body, correlation_id=correlation_id, configuration=configuration)
        return SendOutcome(correlation_id, None, body)

    async def deliver_raw_async(
        self, body: bytes, correlation_id: str, *, configuration: GraylogConfiguration | None = None
    ) -> SendResult:
        self.recorder.record("deliver_raw_async", body=body, correlation_id=correlation_id, configuration=configuration)
        return SendOutcome(correlation_id, None, body)


class _FakeStore(CertificateStorePort):
    def find_by_subject_name(self, subject_name: str, *, valid_only: bool) -> Sequence[StoredCertificate]:
        return []


class _FakeClock(ClockPort):
    def now(self) -> datetime:
        return datetime(2025, 9, 23, tzinfo=timezone.utc)


class _FakeId(IdProvider):
    def __call__(self) -> str:
        return "op-generated"


@pytest.fixture
def recorder() -> _Recorder:
    return _Recorder()


@pytest.mark.parametrize(
    "factory, protocol",
    [
        (lambda rec: _FakeTransport(rec), TransportPort),
        (lambda rec: _FakeStore(), CertificateStorePort),
        (lambda rec: _FakeClock(), ClockPort),
        (lambda rec: _FakeId(), IdProvider),
        (lambda rec: GelfHttpTransport(GraylogConfiguration(facility="auth")), TransportPort),
        (lambda rec: DirectoryCertificateStore(Path("/nonexistent")), CertificateStorePort),
        (lambda rec: SystemClock(), ClockPort),
        (lambda rec: UuidProvider(), IdProvider),
        (lambda rec: GelfHttpClient(GraylogConfiguration(facility="auth")), GelfClientPort),
    ],
)
def test_implementations_satisfy_ports(factory: Callable[[_Recorder], object], protocol: type, recorder: _Recorder) -> None:
    assert isinstance(factory(recorder), protocol)


def test_client_threads_correlation_ids_through_transport(recorder: _Recorder) -> None:
    client = GelfHttpClient(
        GraylogConfiguration(facility="auth"),
        host_name="web01",
        clock=_FakeClock(),
        id_provider=_FakeId(),
        transport=_FakeTransport(recorder),
    )

    explicit = client.send("hello", correlation_id="op-1")
    generated = asyncio.run(client.send_async("hello"))

    assert explicit.correlation_id == "op-1"
    assert generated.correlation_id == "op-generated"
    assert [name for name, _ in recorder.calls] == ["deliver", "deliver_async"]
    entry = recorder.calls[0][1]["entry"]
    assert entry.host == "web01"
    assert entry.timestamp == int(datetime(2025, 9, 23, tzinfo=timezone.utc).timestamp())


def test_raw_resend_passes_overridden_configuration(recorder: _Recorder) -> None:
    config = GraylogConfiguration(facility="auth", host="primary")
    client = GelfHttpClient(config, id_provider=_FakeId(), transport=_FakeTransport(recorder))

    result = asyncio.run(client.send_raw_async(b"payload", override={"host": "fallback"}))

    _, payload = recorder.calls[-1]
    assert result.correlation_id == "op-generated"
    assert payload["configuration"].host == "fallback"
    assert client.configuration.host == "primary"
