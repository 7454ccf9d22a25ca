"""
Pytest configuration and shared fixtures for EventSink tests.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock, Mock

import pytest

from eventsink.config.settings import SinkConfig
from eventsink.events import Event


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.
    
    Yields:
        Path to temporary directory that is cleaned up after test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sink_config() -> SinkConfig:
    """Minimal valid sink configuration."""
    return SinkConfig(bootstrap_servers=("localhost:9092",), topic="events")


@pytest.fixture
def sasl_config() -> SinkConfig:
    """Sink configuration with TLS and SCRAM-SHA-512 enabled."""
    return SinkConfig(
        bootstrap_servers=("broker-1:9093", "broker-2:9093"),
        topic="certificates",
        tls_enabled=True,
        sasl_auth=True,
        sasl_algorithm="sha512",
        sasl_username="eventsink",
        sasl_password="s3cret",
    )


@pytest.fixture
def mock_kafka_producer() -> MagicMock:
    """
    Stand-in for confluent_kafka.Producer.
    
    produce() accepts everything, flush() reports an empty queue.
    """
    producer = MagicMock()
    producer.poll.return_value = 0
    producer.flush.return_value = 0
    producer.__len__.return_value = 0
    return producer


@pytest.fixture
def producer_factory(mock_kafka_producer: MagicMock) -> Mock:
    """Factory returning the mock producer, recording the settings it was given."""
    return Mock(return_value=mock_kafka_producer)


@pytest.fixture
def sample_event() -> Event:
    """A certificate lifecycle event."""
    return Event(
        id="abc",
        source="tls",
        type="cert_obtained",
        time=datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        data={"identifier": "example.com", "renewal": False},
    )


@pytest.fixture
def make_kafka_message():
    """
    Factory fixture building confluent_kafka.Message stand-ins for delivery callbacks.
    """
    def _make(topic: str = "events", key: bytes = b"abc", offset: int = 7) -> Mock:
        msg = Mock()
        msg.topic.return_value = topic
        msg.partition.return_value = 0
        msg.offset.return_value = offset
        msg.key.return_value = key
        return msg
    return _make


# Hypothesis settings for property-based tests
from hypothesis import settings, Verbosity

settings.register_profile("eventsink", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("eventsink-ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("eventsink-dev", max_examples=10, verbosity=Verbosity.verbose)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "eventsink"))
