"""Directory-backed certificate store used for subject-name lookups.

Purpose
-------
Stand in for the local machine certificate store: a directory of PEM files,
each holding a client certificate followed by its private key. Lookups match
the subject name case-insensitively, the way certificate stores search by
subject.

Contents
--------
* :data:`DEFAULT_CERTIFICATE_STORE` – directory used when none is configured.
* :class:`DirectoryCertificateStore` – :class:`CertificateStorePort` implementation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from cryptography import x509

from lib_gelf_http.application.ports.certificates import CertificateStorePort, StoredCertificate
from lib_gelf_http.application.ports.time import ClockPort

from .system import SystemClock

LOGGER = logging.getLogger(__name__)

DEFAULT_CERTIFICATE_STORE = Path("/etc/ssl/gelf-client")

_SUFFIXES = (".pem", ".crt")


def _subject_matches(certificate: x509.Certificate, subject_name: str) -> bool:
    needle = subject_name.strip().casefold()
    if needle in certificate.subject.rfc4514_string().casefold():
        return True
    return any(needle in str(attribute.value).casefold() for attribute in certificate.subject)


class DirectoryCertificateStore(CertificateStorePort):
    """Search PEM files in ``directory`` by certificate subject.

    Parameters
    ----------
    directory:
        Folder scanned (non-recursively) for ``*.pem`` and ``*.crt`` files.
    clock:
        Source of "now" for validity checks.
    """

    def __init__(self, directory: str | Path = DEFAULT_CERTIFICATE_STORE, *, clock: ClockPort | None = None) -> None:
        self._directory = Path(directory)
        self._clock = clock or SystemClock()

    @property
    def directory(self) -> Path:
        return self._directory

    def find_by_subject_name(self, subject_name: str, *, valid_only: bool) -> Sequence[StoredCertificate]:
        """Return certificates whose subject contains ``subject_name``."""
        now = self._clock.now()
        matches = self._entries(subject_name)
        if valid_only:
            matches = [entry for entry in matches if entry.is_valid_at(now)]
        return matches

    def _entries(self, subject_name: str) -> list[StoredCertificate]:
        if not self._directory.is_dir():
            LOGGER.debug("Certificate store %s does not exist", self._directory)
            return []
        entries: list[StoredCertificate] = []
        for path in sorted(self._directory.iterdir()):
            if path.suffix.lower() not in _SUFFIXES or not path.is_file():
                continue
            try:
                certificate = x509.load_pem_x509_certificates(path.read_bytes())[0]
            except (OSError, ValueError) as exc:
                LOGGER.debug("Skipping unreadable certificate file %s: %s", path, exc)
                continue
            if not _subject_matches(certificate, subject_name):
                continue
            entries.append(
                StoredCertificate(
                    path=path,
                    subject=certificate.subject.rfc4514_string(),
                    not_valid_before=certificate.not_valid_before_utc,
                    not_valid_after=certificate.not_valid_after_utc,
                )
            )
        return entries


__all__ = ["DEFAULT_CERTIFICATE_STORE", "DirectoryCertificateStore"]
