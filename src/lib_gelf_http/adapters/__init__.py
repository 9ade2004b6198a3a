"""Concrete adapters: HTTP transport, TLS helpers, certificate store, system ports."""

from __future__ import annotations

from .certificate_store import DEFAULT_CERTIFICATE_STORE, DirectoryCertificateStore
from .http_transport import GelfHttpTransport
from .system import SystemClock, UuidProvider
from .tls import CertificateValidationHook, PeerCertificate, default_validation_hook

__all__ = [
    "CertificateValidationHook",
    "DEFAULT_CERTIFICATE_STORE",
    "DirectoryCertificateStore",
    "GelfHttpTransport",
    "PeerCertificate",
    "SystemClock",
    "UuidProvider",
    "default_validation_hook",
]
