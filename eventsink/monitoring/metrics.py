"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Prometheus metrics for EventSink.

This module provides metrics for the publish pipeline:
- Events enqueued on the producer
- Per-event publish errors (serialization, submission)
- Broker delivery outcomes reported asynchronously
"""

from enum import Enum
from typing import Optional

from prometheus_client import (
    Counter,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
)


class PublishErrorType(str, Enum):
    """Per-event publish error types for metrics."""
    SERIALIZATION = "serialization"
    SUBMISSION = "submission"


class MetricsRegistry:
    """
    Registry for EventSink Prometheus metrics.

    Each handler owns its registry; nothing is registered process-wide.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize metrics registry.

        Args:
            registry: Optional Prometheus CollectorRegistry (creates new if not provided)
        """
        self.registry = registry or CollectorRegistry()

        self.events_published_total = Counter(
            'eventsink_events_published_total',
            'Total number of events enqueued for delivery',
            ['topic'],
            registry=self.registry
        )

        self.publish_errors_total = Counter(
            'eventsink_publish_errors_total',
            'Total number of events rejected before enqueue',
            ['error_type'],
            registry=self.registry
        )

        self.messages_delivered_total = Counter(
            'eventsink_messages_delivered_total',
            'Total number of messages acknowledged by the broker',
            ['topic'],
            registry=self.registry
        )

        self.delivery_failures_total = Counter(
            'eventsink_delivery_failures_total',
            'Total number of messages the broker failed to accept after enqueue',
            ['topic'],
            registry=self.registry
        )

    def record_event_published(self, topic: str):
        self.events_published_total.labels(topic=topic).inc()

    def record_publish_error(self, error_type: PublishErrorType):
        self.publish_errors_total.labels(error_type=error_type.value).inc()

    def record_delivery(self, topic: str, success: bool):
        """
        Record the broker outcome of one message.

        Args:
            topic: Topic the message was produced to
            success: Whether the broker acknowledged the message
        """
        if success:
            self.messages_delivered_total.labels(topic=topic).inc()
        else:
            self.delivery_failures_total.labels(topic=topic).inc()

    def generate_metrics(self) -> bytes:
        """
        Generate Prometheus metrics in text format.

        Returns:
            Metrics in Prometheus text format
        """
        return generate_latest(self.registry)

    def get_content_type(self) -> str:
        return CONTENT_TYPE_LATEST
