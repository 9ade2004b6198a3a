"""Value objects describing the outcome of a delivery attempt.

Purpose
-------
Carry everything a caller needs to correlate, inspect, or replay an attempt:
the correlation id, the serialized GELF text, and the exact bytes placed on the
wire. Instances are immutable and never persisted.

Contents
--------
* :class:`SendOutcome` / :class:`SendError` and the :data:`SendResult` union.
* :class:`TlsPolicyErrors` flags and :class:`TlsValidationError` report.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Flag, auto
from typing import Union

from .errors import FaultKind, classify_fault


@dataclass(slots=True, frozen=True)
class SendOutcome:
    """Successful delivery of one message.

    Attributes
    ----------
    correlation_id:
        Identifier supplied by (or generated for) the originating call.
    message_content:
        Serialized GELF text; ``None`` when only raw bytes were available.
    message_body:
        Bytes transmitted, compressed when compression applied.
    """

    correlation_id: str
    message_content: str | None
    message_body: bytes

    @property
    def ok(self) -> bool:
        return True


@dataclass(slots=True, frozen=True)
class SendError(SendOutcome):
    """Failed delivery; carries the captured ``fault`` for inspection."""

    fault: BaseException | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def fault_kind(self) -> FaultKind:
        """Return the :class:`FaultKind` of the captured fault."""

        if self.fault is None:
            return FaultKind.TRANSPORT
        return classify_fault(self.fault)


SendResult = Union[SendOutcome, SendError]


class TlsPolicyErrors(Flag):
    """Problems found while inspecting the server certificate."""

    NONE = 0
    NOT_AVAILABLE = auto()
    NAME_MISMATCH = auto()
    CHAIN_ERRORS = auto()


@dataclass(slots=True, frozen=True)
class TlsValidationError:
    """Report published when the validation hook rejects a server certificate.

    Attributes
    ----------
    host:
        Collector host the connection was made to.
    certificate:
        DER-encoded leaf certificate, ``None`` when the peer sent none.
    chain:
        DER-encoded certificates presented by the peer, leaf first.
    errors:
        :class:`TlsPolicyErrors` computed for the certificate.
    correlation_id:
        Attempt during which the rejection happened.
    """

    host: str
    certificate: bytes | None
    chain: tuple[bytes, ...]
    errors: TlsPolicyErrors
    correlation_id: str


__all__ = ["SendError", "SendOutcome", "SendResult", "TlsPolicyErrors", "TlsValidationError"]
