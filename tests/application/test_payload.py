from __future__ import annotations

import gzip

from lib_gelf_http.application.use_cases.payload import CONTENT_TYPE, compress, is_gzipped, prepare_request
from lib_gelf_http.domain.configuration import GraylogConfiguration

PAYLOAD = b'{"version":"1.1","host":"web01","_facility":"auth","timestamp":1,"short_message":"login failed"}'


def test_compressed_request_round_trips() -> None:
    request = prepare_request(PAYLOAD, GraylogConfiguration(facility="auth"))

    assert request.compressed is True
    assert is_gzipped(request.body)
    assert gzip.decompress(request.body) == PAYLOAD
    assert request.headers["Content-Encoding"] == "gzip"
    assert request.headers["Content-Type"] == CONTENT_TYPE


def test_plain_request_has_no_content_encoding() -> None:
    request = prepare_request(PAYLOAD, GraylogConfiguration(use_compression=False))

    assert request.body == PAYLOAD
    assert "Content-Encoding" not in request.headers


def test_expect_continue_header_is_opt_in() -> None:
    plain = prepare_request(PAYLOAD, GraylogConfiguration())
    expecting = prepare_request(PAYLOAD, GraylogConfiguration(expect_continue=True))

    assert "Expect" not in plain.headers
    assert expecting.headers["Expect"] == "100-continue"


def test_raw_gzip_body_is_not_compressed_twice() -> None:
    captured = compress(PAYLOAD)

    request = prepare_request(captured, GraylogConfiguration(), raw=True)

    assert request.body == captured
    assert request.headers["Content-Encoding"] == "gzip"


def test_raw_gzip_body_keeps_encoding_when_compression_is_off() -> None:
    captured = compress(PAYLOAD)

    request = prepare_request(captured, GraylogConfiguration(use_compression=False), raw=True)

    assert request.body == captured
    assert request.compressed is True


def test_raw_plain_body_follows_configuration() -> None:
    request = prepare_request(PAYLOAD, GraylogConfiguration(), raw=True)

    assert gzip.decompress(request.body) == PAYLOAD


def test_url_targets_gelf_path() -> None:
    request = prepare_request(PAYLOAD, GraylogConfiguration(host="logs.example.test", port=12202, use_ssl=True))

    assert request.url == "https://logs.example.test:12202/gelf"
