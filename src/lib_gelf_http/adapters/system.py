"""System-backed implementations of the time and identifier ports."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from lib_gelf_http.application.ports.time import ClockPort, IdProvider


class SystemClock(ClockPort):
    """Concrete clock port returning timezone-aware UTC timestamps."""

    def now(self) -> datetime:
        """Return the current UTC timestamp with timezone info."""
        return datetime.now(timezone.utc)


class UuidProvider(IdProvider):
    """Generate random correlation identifiers.

    Examples
    --------
    >>> len(UuidProvider()())
    36
    """

    def __call__(self) -> str:
        return str(uuid.uuid4())


__all__ = ["SystemClock", "UuidProvider"]
