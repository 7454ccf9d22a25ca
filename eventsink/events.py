"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Host events and their serialized form.

Hosts hand events to the sink through the read-only HostEvent protocol.
Each event is encoded as a CloudEvents JSON envelope and wrapped in an
OutboundMessage keyed by the event identifier.
"""

import base64
import json
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Protocol, runtime_checkable
from uuid import UUID, uuid4

from eventsink.exceptions import EventSerializationError

SPEC_VERSION = "1.0"
DEFAULT_CONTENT_TYPE = "application/json"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@runtime_checkable
class HostEvent(Protocol):
    """Read-only view of a host lifecycle event."""

    @property
    def id(self) -> str: ...

    @property
    def source(self) -> str: ...

    @property
    def type(self) -> str: ...

    @property
    def time(self) -> datetime: ...

    @property
    def data_content_type(self) -> str: ...

    @property
    def data(self) -> Any: ...

    @property
    def spec_version(self) -> str: ...


@dataclass(frozen=True)
class Event:
    """
    Lifecycle event emitted by a host application.

    Attributes:
        id: Unique event identifier (UUID string)
        source: Logical origin of the event (e.g. the emitting module)
        type: Event name (e.g. "cert_obtained")
        time: When the event occurred
        data: Event payload
        data_content_type: Media type of the payload
        spec_version: CloudEvents spec version
    """
    id: str
    source: str
    type: str
    time: datetime
    data: Any = None
    data_content_type: str = DEFAULT_CONTENT_TYPE
    spec_version: str = SPEC_VERSION

    @classmethod
    def new(
        cls,
        source: str,
        type: str,
        data: Any = None,
        time: Optional[datetime] = None,
        data_content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> "Event":
        """Create an event with a fresh UUID, timestamped now unless given."""
        return cls(
            id=str(uuid4()),
            source=source,
            type=type,
            time=time or datetime.now(timezone.utc),
            data=data,
            data_content_type=data_content_type,
        )


@dataclass(frozen=True)
class OutboundMessage:
    """Kafka message derived from a single host event."""

    topic: str
    key: bytes
    value: bytes
    timestamp_ms: int


def _as_utc(ts: datetime) -> datetime:
    # Naive timestamps are taken as UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_rfc3339(ts: datetime) -> str:
    """Format a timestamp as RFC 3339 in UTC with a ``Z`` suffix."""
    return _as_utc(ts).isoformat().replace("+00:00", "Z")


def timestamp_millis(ts: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return (_as_utc(ts) - _EPOCH) // timedelta(milliseconds=1)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_rfc3339(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def event_envelope(event: HostEvent) -> Dict[str, Any]:
    """
    Build the CloudEvents envelope for an event.

    Binary payloads are carried base64-encoded in ``data_base64``; a missing
    payload omits the data attribute.
    """
    envelope: Dict[str, Any] = {
        "id": event.id,
        "source": event.source,
        "specversion": event.spec_version,
        "type": event.type,
        "time": format_rfc3339(event.time),
        "datacontenttype": event.data_content_type,
    }

    if isinstance(event.data, (bytes, bytearray)):
        envelope["data_base64"] = base64.b64encode(bytes(event.data)).decode("ascii")
    elif event.data is not None:
        envelope["data"] = event.data

    return envelope


def serialize_event(event: HostEvent) -> bytes:
    """
    Encode an event envelope as UTF-8 JSON.

    Args:
        event: Event to encode

    Returns:
        JSON bytes

    Raises:
        EventSerializationError: If the payload cannot be represented as JSON
    """
    try:
        envelope = event_envelope(event)
        encoded = json.dumps(
            envelope,
            default=_json_default,
            allow_nan=False,
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")
    except (TypeError, ValueError, RecursionError, AttributeError) as e:
        raise EventSerializationError(f"failed to serialize event data: {e}") from e

    return encoded


def build_message(event: HostEvent, topic: str) -> OutboundMessage:
    """
    Build the outbound message for an event.

    Raises:
        EventSerializationError: If the event cannot be encoded
    """
    value = serialize_event(event)
    try:
        timestamp = timestamp_millis(event.time)
    except (TypeError, AttributeError, OverflowError) as e:
        raise EventSerializationError(f"invalid event timestamp: {e}") from e

    return OutboundMessage(
        topic=topic,
        key=event.id.encode("utf-8"),
        value=value,
        timestamp_ms=timestamp,
    )


def event_from_dict(data: Dict[str, Any]) -> Event:
    """
    Build an Event from a decoded JSON object.

    Accepts the CloudEvents attribute names (``id``, ``source``, ``type``,
    ``time``, ``datacontenttype``, ``data``). ``id`` and ``time`` default to
    a fresh UUID and the current time.

    Raises:
        ValueError: If required attributes are missing or malformed
    """
    if not isinstance(data, dict):
        raise ValueError(f"event must be a JSON object, got {type(data).__name__}")

    for required in ("source", "type"):
        if not isinstance(data.get(required), str) or not data[required]:
            raise ValueError(f"event attribute '{required}' is required")

    time = datetime.now(timezone.utc)
    raw_time = data.get("time")
    if raw_time is not None:
        bad_time = f"event attribute 'time' must be an RFC 3339 timestamp, got {raw_time!r}"
        if not isinstance(raw_time, str):
            raise ValueError(bad_time)
        try:
            time = datetime.fromisoformat(raw_time.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(bad_time) from None

    return Event(
        id=str(data.get("id") or uuid4()),
        source=data["source"],
        type=data["type"],
        time=time,
        data=data.get("data"),
        data_content_type=data.get("datacontenttype") or DEFAULT_CONTENT_TYPE,
    )
