"""Ports supplying "now" and correlation identifiers to the send pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class ClockPort(Protocol):
    """Provide the current timezone-aware timestamp for GELF records and certificate validity checks."""

    def now(self) -> datetime: ...


@runtime_checkable
class IdProvider(Protocol):
    """Return a fresh correlation id for a send that was given none.

    The id travels on the returned :class:`~lib_gelf_http.domain.results.SendOutcome`
    or :class:`~lib_gelf_http.domain.results.SendError` and on any
    :class:`~lib_gelf_http.domain.results.TlsValidationError` raised during the
    attempt, so observers can match reports to the originating call. Ids must
    be unique per client; the default is a random UUID4 string.
    """

    def __call__(self) -> str: ...


__all__ = ["ClockPort", "IdProvider"]
