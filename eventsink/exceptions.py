"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Exception hierarchy for EventSink.

All custom exceptions inherit from EventSinkError base class.
"""

from typing import Optional


class EventSinkError(Exception):
    """Base exception for all EventSink errors."""
    pass


# Configuration Errors
class ConfigurationError(EventSinkError):
    """Base exception for configuration-related errors."""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration is invalid or fails validation."""
    pass


class ConfigurationLoadError(ConfigurationError):
    """Raised when a configuration file cannot be found or read."""
    pass


class DirectiveParseError(ConfigurationError):
    """Raised when a directive block cannot be parsed."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


# Provisioning Errors
class ProvisionError(EventSinkError):
    """Raised when the Kafka producer or its transport cannot be set up."""
    pass


# Publishing Errors
class PublishError(EventSinkError):
    """Base exception for per-event publishing errors."""
    pass


class EventSerializationError(PublishError):
    """Raised when an event envelope cannot be encoded."""
    pass


class SubmissionError(PublishError):
    """Raised when a message cannot be enqueued on the local producer."""
    pass


class ProducerQueueFullError(SubmissionError):
    """Raised when the local producer queue has no room for another message."""
    pass
