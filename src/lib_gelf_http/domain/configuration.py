"""Immutable endpoint and security configuration for the GELF client.

Purpose
-------
Hold everything a delivery attempt needs to know about the collector: where it
lives, whether to use TLS and compression, which client certificate to present,
and how long to wait. Instances are read-only for the lifetime of a client;
per-attempt changes go through :meth:`GraylogConfiguration.with_overrides`.

Contents
--------
* :class:`GraylogConfiguration` dataclass with validation helpers.
* :data:`DEFAULT_PORT` and the camelCase key table used by external JSON
  configuration files.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from .errors import ConfigurationError

DEFAULT_PORT = 12201
DEFAULT_REQUEST_TIMEOUT_SECONDS = 120

_EXTERNAL_KEYS: dict[str, str] = {
    "facility": "facility",
    "host": "host",
    "port": "port",
    "useSsl": "use_ssl",
    "useCompression": "use_compression",
    "clientCertificatePath": "client_certificate_path",
    "clientCertificateName": "client_certificate_name",
    "clientCertificatePassword": "client_certificate_password",
    "requestTimeout": "request_timeout_seconds",
    "expectContinue": "expect_continue",
    "certificateStorePath": "certificate_store_path",
}
# camelCase names used by JSON configuration files mapped onto field names.


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    return value if value.strip() else None


@dataclass(slots=True, frozen=True)
class GraylogConfiguration:
    """Connection parameters shared by every send of a client.

    Attributes
    ----------
    facility:
        Label attached to every record as ``_facility``; required for sends.
    host, port:
        Collector endpoint; the GELF path ``/gelf`` is appended by the transport.
    use_ssl:
        Use ``https`` instead of ``http``.
    use_compression:
        Gzip the body and advertise ``Content-Encoding: gzip``.
    client_certificate_path:
        PEM or PKCS#12 file holding the client certificate and key.
    client_certificate_name:
        Subject name looked up in the certificate store instead of a path.
    client_certificate_password:
        Password protecting ``client_certificate_path``.
    request_timeout_seconds:
        Per-request timeout; values ``<= 0`` keep the transport default.
    expect_continue:
        Send ``Expect: 100-continue`` with each POST.
    certificate_store_path:
        Directory searched for ``client_certificate_name`` lookups.
    """

    facility: str | None = None
    host: str = "localhost"
    port: int = DEFAULT_PORT
    use_ssl: bool = False
    use_compression: bool = True
    client_certificate_path: str | None = None
    client_certificate_name: str | None = None
    client_certificate_password: str | None = None
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS
    expect_continue: bool = False
    certificate_store_path: str | None = None

    def __post_init__(self) -> None:
        if not self.host or not self.host.strip():
            raise ValueError("host must not be empty")
        port = int(self.port)
        if port <= 0 or port > 65535:
            raise ValueError(f"port must be between 1 and 65535, got {port}")
        object.__setattr__(self, "port", port)
        object.__setattr__(self, "request_timeout_seconds", int(self.request_timeout_seconds))
        object.__setattr__(self, "client_certificate_path", _blank_to_none(self.client_certificate_path))
        object.__setattr__(self, "client_certificate_name", _blank_to_none(self.client_certificate_name))

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    @property
    def gelf_url(self) -> str:
        """Return the collector URI ``{scheme}://{host}:{port}/gelf``.

        Examples
        --------
        >>> GraylogConfiguration(facility="auth", host="logs.local").gelf_url
        'http://logs.local:12201/gelf'
        >>> GraylogConfiguration(host="logs.local", port=443, use_ssl=True).gelf_url
        'https://logs.local:443/gelf'
        """

        return f"{self.scheme}://{self.host}:{self.port}/gelf"

    @property
    def timeout(self) -> float | None:
        """Return the explicit timeout in seconds, or ``None`` for the transport default."""

        if self.request_timeout_seconds > 0:
            return float(self.request_timeout_seconds)
        return None

    def require_facility(self) -> str:
        """Return the facility or raise when it is not configured."""

        if self.facility is None or not self.facility.strip():
            raise ValueError("facility must be configured before sending")
        return self.facility

    def ensure_single_certificate_source(self) -> None:
        """Raise :class:`ConfigurationError` when both certificate sources are set."""

        if self.client_certificate_path and self.client_certificate_name:
            raise ConfigurationError("You cannot specify both the client certificate path and the client certificate name")

    def with_overrides(self, **overrides: Any) -> "GraylogConfiguration":
        """Return a copy with ``overrides`` applied; ``self`` is left untouched.

        Both snake_case field names and the camelCase keys of JSON files are
        accepted.

        Examples
        --------
        >>> base = GraylogConfiguration(facility="auth", host="primary")
        >>> base.with_overrides(host="fallback").host, base.host
        ('fallback', 'primary')
        """

        if not overrides:
            return self
        return replace(self, **_normalise_keys(overrides))

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "GraylogConfiguration":
        """Build a configuration from a deserialized JSON document.

        Unknown keys are rejected so typos do not silently fall back to defaults.
        """

        return cls(**_normalise_keys(payload))

    def to_dict(self, *, redact: bool = True) -> dict[str, Any]:
        """Return the configuration as a dictionary; the password is masked by default."""

        data = {item.name: getattr(self, item.name) for item in fields(self)}
        if redact and data["client_certificate_password"]:
            data["client_certificate_password"] = "***"
        return data


def _normalise_keys(payload: Mapping[str, Any]) -> dict[str, Any]:
    known = {item.name for item in fields(GraylogConfiguration)}
    normalised: dict[str, Any] = {}
    for key, value in payload.items():
        name = _EXTERNAL_KEYS.get(key, key)
        if name not in known:
            raise ValueError(f"Unknown configuration key: {key!r}")
        normalised[name] = value
    return normalised


__all__ = ["DEFAULT_PORT", "DEFAULT_REQUEST_TIMEOUT_SECONDS", "GraylogConfiguration"]
