"""GELF 1.1 record and the builder that produces it.

Purpose
-------
Turn a short message, an optional full message, and optional structured data
into the canonical record Graylog expects. The builder is a pure function of
its inputs and the injected clock: no I/O and no mutation of caller data.

Contents
--------
* :class:`StructuredLogAttachment` – protocol letting any type contribute its
  own additional fields.
* :class:`GelfLogEntry` – immutable record with JSON serialisation helpers.
* :class:`GelfEntryBuilder` – applies the additional-field rules.

System Role
-----------
Domain layer. The transport only ever sees :class:`GelfLogEntry` instances (or
raw bytes captured from a previous attempt).
"""

from __future__ import annotations

import dataclasses
import json
import logging
import socket
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

GELF_VERSION = "1.1"

RESERVED_FIELDS = frozenset({"version", "host", "_facility", "timestamp", "short_message", "full_message", "_id"})
"""Field names owned by the builder; caller data can never set them."""

logger = logging.getLogger(__name__)


@runtime_checkable
class StructuredLogAttachment(Protocol):
    """Data type that knows how to present itself as GELF additional fields."""

    def gelf_fields(self) -> Mapping[str, Any]:
        """Return flat ``name -> value`` pairs; names are prefixed with ``_`` by the builder."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_epoch_seconds(moment: datetime) -> int:
    """Return whole seconds since the Unix epoch, truncating sub-second precision.

    Examples
    --------
    >>> to_epoch_seconds(datetime(1970, 1, 1, 0, 0, 1, 999_999, tzinfo=timezone.utc))
    1
    """

    if moment.tzinfo is None or moment.tzinfo.utcoffset(moment) is None:
        raise ValueError("timestamp must be timezone-aware")
    return int(moment.astimezone(timezone.utc).timestamp())


def display_string(value: Any) -> str:
    """Convert ``value`` to its display form without ever raising.

    Examples
    --------
    >>> display_string(42)
    '42'
    >>> class Broken:
    ...     def __str__(self):
    ...         raise RuntimeError("nope")
    ...     def __repr__(self):
    ...         raise RuntimeError("nope")
    >>> display_string(Broken())
    '<unprintable Broken>'
    """

    if isinstance(value, str):
        return value
    try:
        return str(value)
    except Exception:  # noqa: BLE001
        pass
    try:
        return repr(value)
    except Exception:  # noqa: BLE001
        return f"<unprintable {type(value).__name__}>"


@dataclass(slots=True, frozen=True)
class GelfLogEntry:
    """Immutable GELF 1.1 record.

    Attributes
    ----------
    host:
        Identity of the originating machine.
    facility:
        Serialized as the ``_facility`` additional field.
    timestamp:
        Whole seconds since the Unix epoch (UTC).
    short_message:
        Required, non-blank summary line.
    full_message:
        Optional long form; ``None`` when blank.
    additional_fields:
        ``_``-prefixed caller fields with string values.
    """

    host: str
    facility: str
    timestamp: int
    short_message: str
    full_message: str | None = None
    additional_fields: Mapping[str, str] = field(default_factory=dict)
    version: str = GELF_VERSION

    def __post_init__(self) -> None:
        if not self.short_message or not self.short_message.strip():
            raise ValueError("short_message must not be empty")
        if self.full_message is not None and not self.full_message.strip():
            object.__setattr__(self, "full_message", None)
        clashes = RESERVED_FIELDS.intersection(self.additional_fields)
        if clashes:
            raise ValueError(f"additional fields use reserved names: {sorted(clashes)}")
        object.__setattr__(self, "additional_fields", MappingProxyType(dict(self.additional_fields)))

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation as a dictionary."""

        data: dict[str, Any] = {
            "version": self.version,
            "host": self.host,
            "_facility": self.facility,
            "timestamp": self.timestamp,
            "short_message": self.short_message,
        }
        if self.full_message is not None:
            data["full_message"] = self.full_message
        data.update(self.additional_fields)
        return data

    def to_json(self) -> str:
        """Serialize the record to compact JSON text.

        Non-ASCII text is kept as is. Lone surrogates (e.g. from
        ``os.fsdecode``) have no UTF-8 form, so such records fall back to
        ``\\uXXXX`` escapes and the text always encodes to UTF-8.

        Examples
        --------
        >>> entry = GelfLogEntry(host="h", facility="f", timestamp=0, short_message="bad \\udcff")
        >>> entry.to_json().endswith('"short_message":"bad \\\\udcff"}')
        True
        """

        data = self.to_dict()
        text = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        try:
            text.encode("utf-8")
        except UnicodeEncodeError:
            return json.dumps(data, ensure_ascii=True, separators=(",", ":"))
        return text


class GelfEntryBuilder:
    """Build :class:`GelfLogEntry` instances for one facility.

    Parameters
    ----------
    facility:
        Label copied into every record; ``None`` makes :meth:`build` fail.
    host:
        Originating machine name; defaults to :func:`socket.gethostname`.
    clock:
        Callable returning a timezone-aware "now"; injected for tests.

    Examples
    --------
    >>> fixed = lambda: datetime(2025, 1, 1, tzinfo=timezone.utc)
    >>> builder = GelfEntryBuilder(facility="auth", host="web01", clock=fixed)
    >>> entry = builder.build("login failed", data={"user": "alice"})
    >>> entry.to_json()
    '{"version":"1.1","host":"web01","_facility":"auth","timestamp":1735689600,"short_message":"login failed","_user":"alice"}'
    """

    def __init__(
        self,
        *,
        facility: str | None,
        host: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._facility = facility
        self._host = host or socket.gethostname()
        self._clock = clock or _utc_now

    def build(self, short_message: str | None, full_message: str | None = None, data: Any = None) -> GelfLogEntry:
        """Create a record from the caller's message and optional ``data``."""

        if short_message is None or not short_message.strip():
            raise ValueError("short_message must not be empty")
        if self._facility is None or not self._facility.strip():
            raise ValueError("facility must be configured before building GELF entries")

        return GelfLogEntry(
            host=self._host,
            facility=self._facility,
            timestamp=to_epoch_seconds(self._clock()),
            short_message=short_message,
            full_message=full_message if full_message and full_message.strip() else None,
            additional_fields=additional_fields(data),
        )


def additional_fields(data: Any) -> dict[str, str]:
    """Flatten ``data`` into ``_``-prefixed string fields.

    ``None`` yields nothing and a plain string becomes ``_data``. Mappings,
    :class:`StructuredLogAttachment` implementations and dataclasses contribute
    one field per key; other objects contribute their public attributes, slots
    and properties. ``None`` values are skipped and reserved names are dropped.

    Examples
    --------
    >>> additional_fields("plain text")
    {'_data': 'plain text'}
    >>> additional_fields({"answer": 42, "missing": None})
    {'_answer': '42'}
    """

    if data is None:
        return {}
    if isinstance(data, str):
        return {"_data": data}

    result: dict[str, str] = {}
    for name, value in _iter_items(data).items():
        if value is None:
            continue
        key = f"_{name}"
        if key in RESERVED_FIELDS:
            logger.warning("Dropping additional field %r: the name is reserved", key)
            continue
        result[key] = display_string(value)
    return result


def _iter_items(data: Any) -> Mapping[str, Any]:
    if isinstance(data, StructuredLogAttachment):
        return {str(key): value for key, value in data.gelf_fields().items()}
    if isinstance(data, Mapping):
        return {str(key): value for key, value in data.items()}
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return {item.name: getattr(data, item.name) for item in dataclasses.fields(data)}
    attributes = _public_attributes(data)
    if attributes:
        return attributes
    return {"data": data}


def _public_attributes(data: Any) -> dict[str, Any]:
    """Read public instance attributes, ``__slots__`` members and properties of ``data``."""

    names: list[str] = list(getattr(data, "__dict__", None) or ())
    for klass in type(data).__mro__:
        slots = vars(klass).get("__slots__", ())
        names.extend((slots,) if isinstance(slots, str) else slots)
        names.extend(name for name, member in vars(klass).items() if isinstance(member, property))

    values: dict[str, Any] = {}
    for name in names:
        if name.startswith("_") or name in values:
            continue
        try:
            values[name] = getattr(data, name)
        except AttributeError:
            # unset slot or property without a getter
            continue
    return values


__all__ = [
    "GELF_VERSION",
    "GelfEntryBuilder",
    "GelfLogEntry",
    "RESERVED_FIELDS",
    "StructuredLogAttachment",
    "additional_fields",
    "display_string",
    "to_epoch_seconds",
]
