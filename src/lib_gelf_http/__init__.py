"""Public package surface for the GELF-over-HTTP client.

Most applications only need :class:`GelfHttpClient` together with
:class:`GraylogConfiguration`; the remaining names are the result and error
types the client reports.
"""

from __future__ import annotations

from .adapters.certificate_store import DirectoryCertificateStore
from .adapters.tls import CertificateValidationHook, PeerCertificate, default_validation_hook
from .client import GelfHttpClient
from .config import enable_dotenv, load_configuration
from .domain.configuration import GraylogConfiguration
from .domain.errors import (
    CertificateInvalidError,
    CertificateLoadError,
    CertificateNotFoundError,
    ConfigurationError,
    FaultKind,
    GelfClientError,
    TlsValidationRejectedError,
)
from .domain.gelf import GelfLogEntry, StructuredLogAttachment
from .domain.results import SendError, SendOutcome, SendResult, TlsPolicyErrors, TlsValidationError

__all__ = [
    "CertificateInvalidError",
    "CertificateLoadError",
    "CertificateNotFoundError",
    "CertificateValidationHook",
    "ConfigurationError",
    "DirectoryCertificateStore",
    "FaultKind",
    "GelfClientError",
    "GelfHttpClient",
    "GelfLogEntry",
    "GraylogConfiguration",
    "PeerCertificate",
    "SendError",
    "SendOutcome",
    "SendResult",
    "StructuredLogAttachment",
    "TlsPolicyErrors",
    "TlsValidationError",
    "TlsValidationRejectedError",
    "default_validation_hook",
    "enable_dotenv",
    "load_configuration",
]
