"""Request preparation shared by every delivery path.

Purpose
-------
Turn already-serialized bytes into the exact body, headers, and URI of the
POST request. Both the record path and the raw-resend path go through
:func:`prepare_request`, so compression and header rules live in one place.
"""

from __future__ import annotations

import gzip
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from lib_gelf_http.domain.configuration import GraylogConfiguration

CONTENT_TYPE = "application/json; charset=UTF-8"
GZIP_MAGIC = b"\x1f\x8b"
COMPRESSION_LEVEL = 9


@dataclass(slots=True, frozen=True)
class PreparedRequest:
    """Everything the transport places on the wire for one attempt."""

    url: str
    body: bytes
    headers: Mapping[str, str]
    compressed: bool


def compress(payload: bytes) -> bytes:
    """Gzip ``payload`` at the optimal (highest) compression level."""

    return gzip.compress(payload, compresslevel=COMPRESSION_LEVEL)


def is_gzipped(payload: bytes) -> bool:
    return payload[:2] == GZIP_MAGIC


def prepare_request(payload: bytes, configuration: GraylogConfiguration, *, raw: bool = False) -> PreparedRequest:
    """Compress (when configured) and assemble the request for ``payload``.

    Raw payloads that already carry the gzip header were captured after
    compression and are sent unchanged.

    Examples
    --------
    >>> config = GraylogConfiguration(facility="auth", host="logs.local", use_compression=False)
    >>> request = prepare_request(b'{"short_message":"hi"}', config)
    >>> request.url, request.body, dict(request.headers)
    ('http://logs.local:12201/gelf', b'{"short_message":"hi"}', {'Content-Type': 'application/json; charset=UTF-8'})
    """

    if raw and is_gzipped(payload):
        body, compressed = payload, True
    elif configuration.use_compression:
        body, compressed = compress(payload), True
    else:
        body, compressed = payload, False

    headers = {"Content-Type": CONTENT_TYPE}
    if compressed:
        headers["Content-Encoding"] = "gzip"
    if configuration.expect_continue:
        headers["Expect"] = "100-continue"

    return PreparedRequest(
        url=configuration.gelf_url,
        body=body,
        headers=MappingProxyType(headers),
        compressed=compressed,
    )


__all__ = ["CONTENT_TYPE", "PreparedRequest", "compress", "is_gzipped", "prepare_request"]
