"""
Configuration management for EventSink.

Handles loading, directive parsing and validation of sink configuration.
"""

from eventsink.config.directives import DirectiveKind, load_directives, parse_directives
from eventsink.config.settings import (
    AppConfig,
    LoggingConfig,
    SASLAlgorithm,
    SinkConfig,
    config_from_dict,
    describe_config,
    load_config,
    validate_config,
)

__all__ = [
    "AppConfig",
    "DirectiveKind",
    "LoggingConfig",
    "SASLAlgorithm",
    "SinkConfig",
    "config_from_dict",
    "describe_config",
    "load_config",
    "load_directives",
    "parse_directives",
    "validate_config",
]
