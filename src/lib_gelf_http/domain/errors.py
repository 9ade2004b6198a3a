"""Exception taxonomy and fault classification for the send pipeline.

Purpose
-------
Give every failure that can happen while delivering a GELF record a stable,
identifiable type so callers inspecting a :class:`~lib_gelf_http.domain.results.SendError`
can react to *why* the attempt failed rather than parsing messages.

Contents
--------
* :class:`GelfClientError` hierarchy raised inside the transport.
* :class:`FaultKind` plus :func:`classify_fault` mapping arbitrary exceptions
  (including ``httpx`` ones) onto the taxonomy.
"""

from __future__ import annotations

from enum import Enum

import httpx


class GelfClientError(Exception):
    """Base class for faults raised by the GELF client itself."""


class ConfigurationError(GelfClientError):
    """Configuration cannot be used for a delivery attempt."""


class CertificateError(GelfClientError):
    """Client certificate could not be resolved."""


class CertificateLoadError(CertificateError):
    """Certificate file is missing, unreadable, or the password is wrong."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot load client certificate from {path!r}: {reason}")
        self.path = path


class CertificateNotFoundError(CertificateError):
    """No certificate in the store matches the requested subject."""

    def __init__(self, subject_name: str) -> None:
        super().__init__(f'Cannot find a certificate with subject "{subject_name}" in the certificate store')
        self.subject_name = subject_name


class CertificateInvalidError(CertificateError):
    """A certificate matches the subject but fails validity checks."""

    def __init__(self, subject_name: str) -> None:
        super().__init__(f'Found a certificate with subject "{subject_name}" in the certificate store, but certificate is invalid')
        self.subject_name = subject_name


class TlsValidationRejectedError(GelfClientError):
    """The certificate-validation hook rejected the server certificate."""

    def __init__(self, host: str) -> None:
        super().__init__(f"Server certificate presented by {host!r} was rejected")
        self.host = host


class FaultKind(Enum):
    """Coarse category of a captured delivery fault."""

    CONFIGURATION = "configuration"
    CERTIFICATE_LOAD = "certificate_load"
    CERTIFICATE_NOT_FOUND = "certificate_not_found"
    CERTIFICATE_INVALID = "certificate_invalid"
    TLS_REJECTED = "tls_rejected"
    TIMEOUT = "timeout"
    CONNECTION = "connection"
    HTTP_STATUS = "http_status"
    TRANSPORT = "transport"


_CLIENT_FAULTS: tuple[tuple[type[BaseException], FaultKind], ...] = (
    (ConfigurationError, FaultKind.CONFIGURATION),
    (CertificateLoadError, FaultKind.CERTIFICATE_LOAD),
    (CertificateNotFoundError, FaultKind.CERTIFICATE_NOT_FOUND),
    (CertificateInvalidError, FaultKind.CERTIFICATE_INVALID),
    (TlsValidationRejectedError, FaultKind.TLS_REJECTED),
    (httpx.TimeoutException, FaultKind.TIMEOUT),
    (httpx.ConnectError, FaultKind.CONNECTION),
    (httpx.HTTPStatusError, FaultKind.HTTP_STATUS),
)


def classify_fault(fault: BaseException) -> FaultKind:
    """Return the :class:`FaultKind` describing ``fault``.

    Examples
    --------
    >>> classify_fault(CertificateNotFoundError("svc")) is FaultKind.CERTIFICATE_NOT_FOUND
    True
    >>> classify_fault(OSError("reset")) is FaultKind.TRANSPORT
    True
    """

    for exc_type, kind in _CLIENT_FAULTS:
        if isinstance(fault, exc_type):
            return kind
    return FaultKind.TRANSPORT


__all__ = [
    "CertificateError",
    "CertificateInvalidError",
    "CertificateLoadError",
    "CertificateNotFoundError",
    "ConfigurationError",
    "FaultKind",
    "GelfClientError",
    "TlsValidationRejectedError",
    "classify_fault",
]
