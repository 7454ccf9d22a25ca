"""
Unit tests for event encoding.
"""

import base64
import json
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from eventsink.events import (
    DEFAULT_CONTENT_TYPE,
    Event,
    HostEvent,
    build_message,
    event_envelope,
    event_from_dict,
    format_rfc3339,
    serialize_event,
    timestamp_millis,
)
from eventsink.exceptions import EventSerializationError


class TestEvent:
    """Test the Event value type."""

    def test_new_assigns_id_and_time(self):
        event = Event.new(source="tls", type="cert_obtained")

        UUID(event.id)
        assert event.time.tzinfo is not None
        assert event.spec_version == "1.0"
        assert event.data_content_type == DEFAULT_CONTENT_TYPE

    def test_new_ids_are_unique(self):
        assert Event.new("tls", "cert_obtained").id != Event.new("tls", "cert_obtained").id

    def test_satisfies_host_event(self, sample_event):
        assert isinstance(sample_event, HostEvent)


class TestTimestamps:
    """Test timestamp helpers."""

    def test_format_utc(self):
        ts = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

        assert format_rfc3339(ts) == "2024-01-01T12:00:00Z"

    def test_format_converts_offset_to_utc(self):
        ts = datetime(2024, 1, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_rfc3339(ts) == "2024-01-01T12:00:00Z"

    def test_format_naive_taken_as_utc(self):
        assert format_rfc3339(datetime(2024, 1, 1, 12, 0, 0)) == "2024-01-01T12:00:00Z"

    def test_format_keeps_microseconds(self):
        ts = datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

        assert format_rfc3339(ts) == "2024-01-01T12:00:00.123456Z"

    def test_timestamp_millis(self):
        ts = datetime(2024, 1, 1, 12, 0, 0, 999999, tzinfo=timezone.utc)

        assert timestamp_millis(ts) == 1704110400999


class TestEnvelope:
    """Test the CloudEvents envelope."""

    def test_fields(self, sample_event):
        envelope = event_envelope(sample_event)

        assert envelope == {
            "id": "abc",
            "source": "tls",
            "specversion": "1.0",
            "type": "cert_obtained",
            "time": "2024-01-01T12:00:00Z",
            "datacontenttype": "application/json",
            "data": {"identifier": "example.com", "renewal": False},
        }

    def test_no_data(self, sample_event):
        event = Event(id="1", source="s", type="t", time=sample_event.time)

        assert "data" not in event_envelope(event)

    def test_binary_data(self, sample_event):
        event = Event(
            id="1",
            source="s",
            type="t",
            time=sample_event.time,
            data=b"\x00\x01raw",
            data_content_type="application/octet-stream",
        )

        envelope = event_envelope(event)

        assert "data" not in envelope
        assert base64.b64decode(envelope["data_base64"]) == b"\x00\x01raw"
        assert envelope["datacontenttype"] == "application/octet-stream"


class TestSerializeEvent:
    """Test JSON encoding."""

    def test_round_trips_through_json(self, sample_event):
        decoded = json.loads(serialize_event(sample_event))

        assert decoded["id"] == "abc"
        assert decoded["time"] == "2024-01-01T12:00:00Z"
        assert decoded["data"] == {"identifier": "example.com", "renewal": False}

    def test_compact_utf8(self, sample_event):
        event = Event(id="1", source="s", type="t", time=sample_event.time, data={"name": "café"})

        value = serialize_event(event)

        assert b" " not in value
        assert "café".encode("utf-8") in value

    def test_rich_payload_types(self, sample_event):
        event = Event(
            id="1",
            source="s",
            type="t",
            time=sample_event.time,
            data={
                "expires": datetime(2025, 1, 1, tzinfo=timezone.utc),
                "amount": Decimal("1.50"),
                "request": UUID("12345678-1234-5678-1234-567812345678"),
                "sans": ("a.example", "b.example"),
            },
        )

        data = json.loads(serialize_event(event))["data"]

        assert data == {
            "expires": "2025-01-01T00:00:00Z",
            "amount": "1.50",
            "request": "12345678-1234-5678-1234-567812345678",
            "sans": ["a.example", "b.example"],
        }

    def test_unserializable_payload(self, sample_event):
        event = Event(id="1", source="s", type="t", time=sample_event.time, data={"obj": object()})

        with pytest.raises(EventSerializationError, match="failed to serialize event data"):
            serialize_event(event)

    def test_nan_rejected(self, sample_event):
        event = Event(id="1", source="s", type="t", time=sample_event.time, data={"v": float("nan")})

        with pytest.raises(EventSerializationError):
            serialize_event(event)

    def test_circular_payload(self, sample_event):
        data = {}
        data["self"] = data
        event = Event(id="1", source="s", type="t", time=sample_event.time, data=data)

        with pytest.raises(EventSerializationError):
            serialize_event(event)


class TestBuildMessage:
    """Test outbound message construction."""

    def test_message(self, sample_event):
        message = build_message(sample_event, "events")

        assert message.topic == "events"
        assert message.key == b"abc"
        assert message.value == serialize_event(sample_event)
        assert message.timestamp_ms == 1704110400000

    def test_serialization_failure_propagates(self, sample_event):
        event = Event(id="1", source="s", type="t", time=sample_event.time, data=object())

        with pytest.raises(EventSerializationError):
            build_message(event, "events")


class TestEventFromDict:
    """Test decoding events from JSON objects."""

    def test_full_event(self):
        event = event_from_dict({
            "id": "abc",
            "source": "tls",
            "type": "cert_obtained",
            "time": "2024-01-01T12:00:00Z",
            "datacontenttype": "application/json",
            "data": {"identifier": "example.com"},
        })

        assert event.id == "abc"
        assert event.time == datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        assert event.data == {"identifier": "example.com"}

    def test_defaults(self):
        event = event_from_dict({"source": "tls", "type": "cert_obtained"})

        UUID(event.id)
        assert event.time.tzinfo is not None
        assert event.data is None
        assert event.data_content_type == DEFAULT_CONTENT_TYPE

    @pytest.mark.parametrize("data", [
        {"type": "cert_obtained"},
        {"source": "tls"},
        {"source": "", "type": "cert_obtained"},
        {"source": "tls", "type": 5},
    ])
    def test_missing_required_attribute(self, data):
        with pytest.raises(ValueError, match="is required"):
            event_from_dict(data)

    def test_not_an_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            event_from_dict(["tls", "cert_obtained"])

    @pytest.mark.parametrize("value", ["yesterday", 1700000000, 1.5, True, ["2024-01-01"]])
    def test_bad_time(self, value):
        """Test a malformed or non-string time names the attribute."""
        with pytest.raises(ValueError, match="event attribute 'time'"):
            event_from_dict({"source": "tls", "type": "t", "time": value})
