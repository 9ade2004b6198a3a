"""Fire-and-forget broadcasting of delivery results.

Purpose
-------
Deliver :class:`SendOutcome`, :class:`SendError`, and
:class:`TlsValidationError` reports to zero or more observers. Send calls
already return the result value; the broadcaster is the optional notification
layer for callers that prefer callbacks.

Contents
--------
* :class:`ResultBroadcaster` – three observer channels with subscribe/unsubscribe.

System Role
-----------
Application layer. Observer failures are logged and never reach the send call.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

from lib_gelf_http.domain.results import SendError, SendOutcome, SendResult, TlsValidationError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]


class _Channel(Generic[T]):
    """Thread-safe list of observers for one report type."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._observers: list[Callable[[T], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, observer: Callable[[T], None]) -> Unsubscribe:
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                try:
                    self._observers.remove(observer)
                except ValueError:
                    pass

        return _unsubscribe

    def __len__(self) -> int:
        with self._lock:
            return len(self._observers)

    def publish(self, report: T) -> None:
        with self._lock:
            observers = tuple(self._observers)
        for observer in observers:
            try:
                observer(report)
            except Exception as exc:  # noqa: BLE001
                LOGGER.error("%s observer raised an exception; continuing", self._name, exc_info=exc)


class ResultBroadcaster:
    """Route delivery reports to subscribed observers.

    Examples
    --------
    >>> broadcaster = ResultBroadcaster()
    >>> seen = []
    >>> unsubscribe = broadcaster.subscribe_success(lambda outcome: seen.append(outcome.correlation_id))
    >>> broadcaster.publish(SendOutcome("op-1", "{}", b"{}"))
    >>> broadcaster.publish(SendError("op-2", "{}", b"{}", fault=OSError("down")))
    >>> seen
    ['op-1']
    >>> unsubscribe()
    >>> broadcaster.publish(SendOutcome("op-3", "{}", b"{}"))
    >>> seen
    ['op-1']
    """

    def __init__(self) -> None:
        self._success: _Channel[SendOutcome] = _Channel("success")
        self._error: _Channel[SendError] = _Channel("error")
        self._tls_error: _Channel[TlsValidationError] = _Channel("tls_error")

    def subscribe_success(self, observer: Callable[[SendOutcome], None]) -> Unsubscribe:
        """Register ``observer`` for successful deliveries."""

        return self._success.subscribe(observer)

    def subscribe_error(self, observer: Callable[[SendError], None]) -> Unsubscribe:
        """Register ``observer`` for failed deliveries."""

        return self._error.subscribe(observer)

    def subscribe_tls_error(self, observer: Callable[[TlsValidationError], None]) -> Unsubscribe:
        """Register ``observer`` for rejected server certificates."""

        return self._tls_error.subscribe(observer)

    @property
    def has_tls_observers(self) -> bool:
        return len(self._tls_error) > 0

    def publish(self, result: SendResult) -> None:
        """Dispatch ``result`` to the success or the error channel, never both."""

        if isinstance(result, SendError):
            self._error.publish(result)
        else:
            self._success.publish(result)

    def publish_tls_error(self, report: TlsValidationError) -> None:
        self._tls_error.publish(report)


__all__ = ["ResultBroadcaster", "Unsubscribe"]
