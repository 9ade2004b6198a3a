"""Application use cases orchestrating the send pipeline."""

from __future__ import annotations

from .payload import PreparedRequest, prepare_request
from .reporting import ResultBroadcaster, Unsubscribe

__all__ = ["PreparedRequest", "ResultBroadcaster", "Unsubscribe", "prepare_request"]
