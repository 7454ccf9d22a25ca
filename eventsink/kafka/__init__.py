"""
Kafka producer components for EventSink.

Provides transport security and the asynchronous event producer.
"""

from eventsink.kafka.producer import (
    EventProducer,
    build_producer_settings,
    provision_producer,
)
from eventsink.kafka.security import (
    ScramMechanism,
    TLSSettings,
    TransportSecurity,
    saslprep,
)

__all__ = [
    "EventProducer",
    "ScramMechanism",
    "TLSSettings",
    "TransportSecurity",
    "build_producer_settings",
    "provision_producer",
    "saslprep",
]
