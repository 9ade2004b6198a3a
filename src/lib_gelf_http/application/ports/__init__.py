"""Ports (Protocols) the application layer depends on."""

from __future__ import annotations

from .certificates import CertificateStorePort, StoredCertificate
from .client import GelfClientPort
from .time import ClockPort, IdProvider
from .transport import TransportPort

__all__ = [
    "CertificateStorePort",
    "ClockPort",
    "GelfClientPort",
    "IdProvider",
    "StoredCertificate",
    "TransportPort",
]
