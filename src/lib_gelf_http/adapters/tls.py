"""TLS helpers: client-certificate resolution and server-certificate inspection.

Purpose
-------
Build the :class:`ssl.SSLContext` used for one delivery attempt and, when a
certificate-validation hook is installed, evaluate the certificate presented
by the collector so the hook can accept or reject it.

Contents
--------
* :func:`create_ssl_context` – resolves exactly one client-certificate source.
* :func:`load_certificate_file` / :func:`select_store_certificate` – the two
  sources (file path vs. subject lookup in a store).
* :class:`PeerCertificate`, :func:`inspect_peer`, :func:`evaluate_certificate`
  and :func:`default_validation_hook` for server-certificate validation.

System Role
-----------
Adapter layer; used by :class:`lib_gelf_http.adapters.http_transport.GelfHttpTransport`.
"""

from __future__ import annotations

import ipaddress
import logging
import secrets
import ssl
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import certifi
from cryptography import x509
from cryptography.hazmat.primitives.serialization import BestAvailableEncryption, Encoding, PrivateFormat, pkcs12
from cryptography.x509.verification import PolicyBuilder, Store, VerificationError

from lib_gelf_http.application.ports.certificates import CertificateStorePort, StoredCertificate
from lib_gelf_http.domain.configuration import GraylogConfiguration
from lib_gelf_http.domain.errors import CertificateInvalidError, CertificateLoadError, CertificateNotFoundError
from lib_gelf_http.domain.results import TlsPolicyErrors

from .certificate_store import DEFAULT_CERTIFICATE_STORE, DirectoryCertificateStore

LOGGER = logging.getLogger(__name__)

_PKCS12_SUFFIXES = frozenset({".pfx", ".p12"})


@dataclass(slots=True, frozen=True)
class PeerCertificate:
    """Server certificate handed to a validation hook.

    Attributes
    ----------
    host:
        Host name the client connected to.
    certificate:
        DER-encoded leaf certificate, ``None`` when the peer sent none.
    chain:
        DER-encoded certificates presented by the peer, leaf first.
    errors:
        Problems found by :func:`evaluate_certificate`.
    """

    host: str
    certificate: bytes | None
    chain: tuple[bytes, ...]
    errors: TlsPolicyErrors


CertificateValidationHook = Callable[[PeerCertificate], bool]


def default_validation_hook(peer: PeerCertificate) -> bool:
    """Accept the server certificate only when no policy error was found."""

    return not peer.errors


def create_ssl_context(
    configuration: GraylogConfiguration,
    *,
    certificate_store: CertificateStorePort | None = None,
    verify_server: bool = True,
) -> ssl.SSLContext:
    """Return the SSL context for one attempt with the client certificate attached.

    Parameters
    ----------
    configuration:
        Attempt configuration; both certificate sources set is rejected before
        anything is read from disk.
    certificate_store:
        Store used for subject lookups; defaults to a
        :class:`DirectoryCertificateStore` over ``certificate_store_path``.
    verify_server:
        ``False`` disables built-in server verification because a validation
        hook takes over that decision.
    """

    configuration.ensure_single_certificate_source()
    context = ssl.create_default_context(cafile=certifi.where())
    if not verify_server:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    if configuration.client_certificate_path:
        load_certificate_file(context, configuration.client_certificate_path, configuration.client_certificate_password)
    elif configuration.client_certificate_name:
        store = certificate_store or DirectoryCertificateStore(configuration.certificate_store_path or DEFAULT_CERTIFICATE_STORE)
        entry = select_store_certificate(store, configuration.client_certificate_name)
        LOGGER.debug("Using client certificate %s from %s", entry.subject, entry.path)
        load_certificate_file(context, str(entry.path), None)
    return context


def select_store_certificate(store: CertificateStorePort, subject_name: str) -> StoredCertificate:
    """Pick the certificate matching ``subject_name``.

    A valid-only search runs first. A match found only by the permissive search
    is reported as invalid; no match at all is reported as not found.
    """

    valid = store.find_by_subject_name(subject_name, valid_only=True)
    if valid:
        return valid[0]
    if store.find_by_subject_name(subject_name, valid_only=False):
        raise CertificateInvalidError(subject_name)
    raise CertificateNotFoundError(subject_name)


def load_certificate_file(context: ssl.SSLContext, path: str, password: str | None) -> None:
    """Load a PEM or PKCS#12 (``.pfx``/``.p12``) client certificate into ``context``."""

    file_path = Path(path)
    try:
        if file_path.suffix.lower() in _PKCS12_SUFFIXES:
            _load_pkcs12(context, file_path, password)
        else:
            # An empty password keeps OpenSSL from prompting on the terminal.
            context.load_cert_chain(file_path, password=password if password is not None else "")
    except FileNotFoundError as exc:
        raise CertificateLoadError(path, "file not found") from exc
    except (OSError, ValueError) as exc:
        raise CertificateLoadError(path, str(exc) or type(exc).__name__) from exc


def _load_pkcs12(context: ssl.SSLContext, path: Path, password: str | None) -> None:
    key, certificate, additional = pkcs12.load_key_and_certificates(
        path.read_bytes(),
        password.encode("utf-8") if password else None,
    )
    if key is None or certificate is None:
        raise ValueError("PKCS#12 bundle does not contain a certificate and private key")

    secret = secrets.token_urlsafe(32)
    bundle = certificate.public_bytes(Encoding.PEM)
    bundle += b"".join(extra.public_bytes(Encoding.PEM) for extra in additional or ())
    bundle += key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, BestAvailableEncryption(secret.encode("ascii")))
    with tempfile.TemporaryDirectory() as scratch:
        pem_path = Path(scratch) / "client.pem"
        pem_path.write_bytes(bundle)
        context.load_cert_chain(pem_path, password=secret)


def inspect_peer(ssl_object: Any, host: str) -> PeerCertificate:
    """Collect and evaluate the certificate presented on ``ssl_object``."""

    leaf = ssl_object.getpeercert(True) if ssl_object is not None else None
    if not leaf:
        return PeerCertificate(host=host, certificate=None, chain=(), errors=TlsPolicyErrors.NOT_AVAILABLE)
    chain = _peer_chain(ssl_object, leaf)
    return PeerCertificate(host=host, certificate=leaf, chain=chain, errors=evaluate_certificate(leaf, chain[1:], host))


def _peer_chain(ssl_object: Any, leaf: bytes) -> tuple[bytes, ...]:
    getter = getattr(ssl_object, "get_unverified_chain", None)
    raw = getter() if getter is not None else None
    if not raw:
        return (leaf,)
    return tuple(item if isinstance(item, bytes) else ssl.PEM_cert_to_DER_cert(item.public_bytes()) for item in raw)


def evaluate_certificate(
    certificate: bytes,
    intermediates: Sequence[bytes],
    host: str,
    *,
    trust_store: Store | None = None,
) -> TlsPolicyErrors:
    """Return the policy errors of a DER ``certificate`` presented for ``host``."""

    leaf = x509.load_der_x509_certificate(certificate)
    errors = TlsPolicyErrors.NONE
    name_ok = host_matches(leaf, host)
    if not name_ok:
        errors |= TlsPolicyErrors.NAME_MISMATCH

    subject = _general_name(host) if name_ok else _fallback_subject(leaf)
    chain = [x509.load_der_x509_certificate(item) for item in intermediates]
    if subject is None or not _chain_trusted(leaf, chain, subject, trust_store or _default_trust_store()):
        errors |= TlsPolicyErrors.CHAIN_ERRORS
    return errors


def host_matches(certificate: x509.Certificate, host: str) -> bool:
    """Return ``True`` when ``certificate`` names ``host`` (SAN first, CN fallback)."""

    try:
        san: x509.SubjectAlternativeName | None = certificate.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        san = None

    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        address = None
    if address is not None:
        return san is not None and address in san.get_values_for_type(x509.IPAddress)

    if san is not None:
        patterns = san.get_values_for_type(x509.DNSName)
    else:
        patterns = [str(attr.value) for attr in certificate.subject.get_attributes_for_oid(x509.NameOID.COMMON_NAME)]
    return any(_dns_match(pattern, host) for pattern in patterns)


def _dns_match(pattern: str, host: str) -> bool:
    pattern = pattern.lower().rstrip(".")
    host = host.lower().rstrip(".")
    if pattern.startswith("*."):
        label, _, rest = host.partition(".")
        return bool(label) and bool(rest) and rest == pattern[2:]
    return pattern == host


def _general_name(host: str) -> x509.GeneralName:
    try:
        return x509.IPAddress(ipaddress.ip_address(host))
    except ValueError:
        return x509.DNSName(host)


def _fallback_subject(leaf: x509.Certificate) -> x509.GeneralName | None:
    try:
        san = leaf.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return None
    for name in san:
        if isinstance(name, x509.IPAddress):
            return name
        if isinstance(name, x509.DNSName):
            return x509.DNSName(name.value.replace("*", "wildcard", 1))
    return None


def _chain_trusted(
    leaf: x509.Certificate,
    intermediates: list[x509.Certificate],
    subject: x509.GeneralName,
    trust_store: Store,
) -> bool:
    try:
        PolicyBuilder().store(trust_store).build_server_verifier(subject).verify(leaf, intermediates)
    except (VerificationError, ValueError) as exc:
        LOGGER.debug("Server certificate chain rejected: %s", exc)
        return False
    return True


@lru_cache(maxsize=1)
def _default_trust_store() -> Store:
    roots: list[x509.Certificate] = []
    for der in ssl.create_default_context(cafile=certifi.where()).get_ca_certs(binary_form=True):
        try:
            roots.append(x509.load_der_x509_certificate(der))
        except ValueError as exc:
            LOGGER.debug("Skipping trust root rejected by the X.509 parser: %s", exc)
    return Store(roots)


__all__ = [
    "CertificateValidationHook",
    "PeerCertificate",
    "create_ssl_context",
    "default_validation_hook",
    "evaluate_certificate",
    "host_matches",
    "inspect_peer",
    "load_certificate_file",
    "select_store_certificate",
]
