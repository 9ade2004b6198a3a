"""Domain entities and value objects used by the GELF send pipeline."""

from __future__ import annotations

from .configuration import DEFAULT_PORT, GraylogConfiguration
from .errors import (
    CertificateError,
    CertificateInvalidError,
    CertificateLoadError,
    CertificateNotFoundError,
    ConfigurationError,
    FaultKind,
    GelfClientError,
    TlsValidationRejectedError,
    classify_fault,
)
from .gelf import GelfEntryBuilder, GelfLogEntry, StructuredLogAttachment
from .results import SendError, SendOutcome, SendResult, TlsPolicyErrors, TlsValidationError

__all__ = [
    "CertificateError",
    "CertificateInvalidError",
    "CertificateLoadError",
    "CertificateNotFoundError",
    "ConfigurationError",
    "DEFAULT_PORT",
    "FaultKind",
    "GelfClientError",
    "GelfEntryBuilder",
    "GelfLogEntry",
    "GraylogConfiguration",
    "SendError",
    "SendOutcome",
    "SendResult",
    "StructuredLogAttachment",
    "TlsPolicyErrors",
    "TlsValidationError",
    "TlsValidationRejectedError",
    "classify_fault",
]
