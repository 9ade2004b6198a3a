"""Port describing a searchable client-certificate store."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable


@dataclass(slots=True, frozen=True)
class StoredCertificate:
    """Certificate entry found in a store.

    ``path`` points at a PEM file holding the certificate followed by its
    private key, ready for :meth:`ssl.SSLContext.load_cert_chain`.
    """

    path: Path
    subject: str
    not_valid_before: datetime
    not_valid_after: datetime

    def is_valid_at(self, moment: datetime) -> bool:
        return self.not_valid_before <= moment <= self.not_valid_after


@runtime_checkable
class CertificateStorePort(Protocol):
    """Look up client certificates by subject name."""

    def find_by_subject_name(self, subject_name: str, *, valid_only: bool) -> Sequence[StoredCertificate]:
        """Return certificates whose subject contains ``subject_name``.

        With ``valid_only`` set, entries outside their validity window are
        excluded.
        """


__all__ = ["CertificateStorePort", "StoredCertificate"]
