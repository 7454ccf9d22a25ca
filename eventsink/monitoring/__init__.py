"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Monitoring and observability for EventSink.

This module provides Prometheus metrics for the publish pipeline.
"""

from eventsink.monitoring.metrics import MetricsRegistry, PublishErrorType

__all__ = [
    "MetricsRegistry",
    "PublishErrorType",
]
