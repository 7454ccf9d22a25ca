"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

EventSink - Kafka bridge for host lifecycle events.

EventSink receives lifecycle events from a host application and forwards
each one as a serialized message to a Kafka topic, with optional TLS and
SASL/SCRAM transport security.
"""

from eventsink._version import __version__
from eventsink.config.settings import SinkConfig
from eventsink.events import Event, HostEvent
from eventsink.handler import KafkaEventHandler, create_handler

__all__ = [
    "__version__",
    "Event",
    "HostEvent",
    "KafkaEventHandler",
    "SinkConfig",
    "create_handler",
]
