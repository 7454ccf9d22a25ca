"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Configuration management for EventSink.

Loads YAML (or JSON) configuration from file and validates the sink
settings before any broker connection is attempted.
Supports environment variable substitution using ${ENV_VAR} syntax.
"""

import os
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from eventsink.exceptions import ConfigurationLoadError, InvalidConfigurationError
from eventsink.logging_config import get_logger

logger = get_logger(__name__)


class SASLAlgorithm(str, Enum):
    """SCRAM hash algorithms supported for SASL authentication."""
    SHA256 = "sha256"
    SHA512 = "sha512"

    @property
    def mechanism(self) -> str:
        """librdkafka ``sasl.mechanism`` name for this algorithm."""
        return f"SCRAM-{self.name[:3]}-{self.name[3:]}"


SUPPORTED_SASL_ALGORITHMS = frozenset(a.value for a in SASLAlgorithm)

# Producer settings owned by the provisioner; overrides may not replace them.
RESERVED_PRODUCER_KEYS = frozenset({
    "bootstrap.servers",
    "security.protocol",
    "sasl.mechanism",
    "sasl.mechanisms",
    "sasl.username",
    "sasl.password",
    "enable.ssl.certificate.verification",
    "ssl.endpoint.identification.algorithm",
})


@dataclass(frozen=True)
class SinkConfig:
    """Connection and security settings for the Kafka event sink."""

    bootstrap_servers: Tuple[str, ...] = ()
    topic: str = ""
    tls_enabled: bool = False
    tls_no_verify: bool = False
    sasl_auth: bool = False
    sasl_algorithm: str = ""
    sasl_username: str = ""
    sasl_password: str = ""
    client_id: str = "eventsink"
    flush_timeout: float = 10.0
    producer_overrides: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        # Container fields are stored as read-only copies
        object.__setattr__(self, "bootstrap_servers", tuple(self.bootstrap_servers))
        object.__setattr__(
            self, "producer_overrides", MappingProxyType(dict(self.producer_overrides))
        )

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks
        password = "***" if self.sasl_password else ""
        return (
            f"SinkConfig(bootstrap_servers={self.bootstrap_servers!r}, "
            f"topic={self.topic!r}, tls_enabled={self.tls_enabled}, "
            f"tls_no_verify={self.tls_no_verify}, sasl_auth={self.sasl_auth}, "
            f"sasl_algorithm={self.sasl_algorithm!r}, "
            f"sasl_username={self.sasl_username!r}, sasl_password={password!r})"
        )


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"  # "json" or "console"
    file: str = ""


@dataclass(frozen=True)
class AppConfig:
    """Top-level EventSink configuration file contents."""

    sink: SinkConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _expand_env_vars(value: Any) -> Any:
    """
    Recursively expand environment variables in configuration values.

    Supports ${ENV_VAR} syntax with optional default values: ${ENV_VAR:default}

    Args:
        value: Configuration value (string, dict, list, or other)

    Returns:
        Value with environment variables expanded
    """
    if isinstance(value, str):
        pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

        def replace_env_var(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else ""
            return os.environ.get(var_name, default_value)

        return re.sub(pattern, replace_env_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


def split_servers(value: str) -> Tuple[str, ...]:
    """Split a comma-separated broker list, trimming each address."""
    return tuple(item.strip() for item in value.split(","))


def _require_type(key: str, value: Any, expected: type) -> Any:
    if not isinstance(value, expected) or (expected is not bool and isinstance(value, bool)):
        raise InvalidConfigurationError(
            f"'{key}' must be of type {expected.__name__}, got {type(value).__name__}"
        )
    return value


def config_from_dict(data: Dict[str, Any]) -> SinkConfig:
    """
    Build a SinkConfig from the structured (JSON/YAML) handler schema.

    ``bootstrap_servers`` may be a list of addresses or a comma-separated
    string. ``producer`` holds extra librdkafka settings. Unknown keys are
    rejected.

    Args:
        data: Mapping of handler settings

    Returns:
        SinkConfig: Unvalidated configuration

    Raises:
        InvalidConfigurationError: If a key is unknown or has the wrong type
    """
    if not isinstance(data, dict):
        raise InvalidConfigurationError(
            f"sink configuration must be a mapping, got {type(data).__name__}"
        )

    known = {f.name for f in fields(SinkConfig)} - {"producer_overrides"} | {"producer"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise InvalidConfigurationError(f"Unknown sink configuration keys: {', '.join(unknown)}")

    values: Dict[str, Any] = {}

    servers = data.get("bootstrap_servers")
    if servers is not None:
        if isinstance(servers, str):
            values["bootstrap_servers"] = split_servers(servers)
        elif isinstance(servers, list):
            values["bootstrap_servers"] = tuple(
                _require_type("bootstrap_servers[]", item, str).strip() for item in servers
            )
        else:
            raise InvalidConfigurationError(
                "'bootstrap_servers' must be a list of strings or a comma-separated string"
            )

    for key in ("topic", "sasl_algorithm", "sasl_username", "sasl_password", "client_id"):
        if data.get(key) is not None:
            values[key] = _require_type(key, data[key], str)

    for key in ("tls_enabled", "tls_no_verify", "sasl_auth"):
        if data.get(key) is not None:
            values[key] = _require_type(key, data[key], bool)

    if data.get("flush_timeout") is not None:
        timeout = data["flush_timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise InvalidConfigurationError("'flush_timeout' must be a number of seconds")
        values["flush_timeout"] = float(timeout)

    if data.get("producer") is not None:
        values["producer_overrides"] = dict(_require_type("producer", data["producer"], dict))

    return SinkConfig(**values)


def validate_config(config: SinkConfig) -> None:
    """
    Validate sink configuration values.

    Rules are checked in order and the first failure is raised.

    Args:
        config: Configuration to validate

    Raises:
        InvalidConfigurationError: If configuration is invalid
    """
    if not config.bootstrap_servers:
        logger.error("Configuration validation failed: bootstrap_servers missing")
        raise InvalidConfigurationError("kafka bootstrap_servers missing")

    if not config.topic:
        logger.error("Configuration validation failed: topic missing")
        raise InvalidConfigurationError("kafka topic missing")

    if config.sasl_auth:
        if not config.sasl_username:
            raise InvalidConfigurationError("kafka missing sasl username")
        if not config.sasl_password:
            raise InvalidConfigurationError("kafka missing sasl password")
        if config.sasl_algorithm not in SUPPORTED_SASL_ALGORITHMS:
            raise InvalidConfigurationError(
                f"kafka invalid sasl algorithm: {config.sasl_algorithm!r} "
                f"(expected one of {sorted(SUPPORTED_SASL_ALGORITHMS)})"
            )

    if any(not server for server in config.bootstrap_servers):
        raise InvalidConfigurationError(
            f"kafka bootstrap_servers contains an empty address: {list(config.bootstrap_servers)}"
        )

    if config.flush_timeout <= 0:
        raise InvalidConfigurationError(
            f"flush_timeout must be positive, got {config.flush_timeout}"
        )

    reserved = sorted(RESERVED_PRODUCER_KEYS & set(config.producer_overrides))
    if reserved:
        raise InvalidConfigurationError(
            f"producer overrides may not set: {', '.join(reserved)}"
        )

    if config.tls_no_verify and not config.tls_enabled:
        logger.warning(
            "tls_no_verify_without_tls",
            message="tls_no_verify has no effect unless tls is enabled",
        )


def _build_logging_config(logging_data: Any) -> LoggingConfig:
    if not isinstance(logging_data, dict):
        raise InvalidConfigurationError("'logging' section must be a mapping")

    default = LoggingConfig()
    log_format = logging_data.get("format", default.format)
    if log_format not in ("json", "console"):
        raise InvalidConfigurationError(
            f"logging format must be 'json' or 'console', got {log_format!r}"
        )

    return LoggingConfig(
        level=str(logging_data.get("level", default.level)).upper(),
        format=log_format,
        file=os.path.expanduser(logging_data.get("file", default.file) or ""),
    )


def load_config(config_path: str) -> AppConfig:
    """
    Load configuration from a YAML or JSON file with validation.

    The file must contain a ``sink`` section and may contain a ``logging``
    section.

    Args:
        config_path: Path to configuration file

    Returns:
        AppConfig: Loaded and validated configuration

    Raises:
        ConfigurationLoadError: If the file does not exist or cannot be read
        InvalidConfigurationError: If configuration is invalid or malformed
    """
    config_path = os.path.expanduser(str(config_path))

    if not os.path.exists(config_path):
        logger.error("config_file_not_found", path=config_path)
        raise ConfigurationLoadError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f)
        logger.debug("config_file_loaded", path=config_path)
    except yaml.YAMLError as e:
        logger.error("config_parse_failed", path=config_path, error=str(e))
        raise InvalidConfigurationError(
            f"Failed to parse configuration file '{config_path}': {e}"
        ) from e
    except OSError as e:
        logger.error("config_read_failed", path=config_path, error=str(e))
        raise ConfigurationLoadError(
            f"Failed to read configuration file '{config_path}': {e}"
        ) from e

    if config_data is None:
        raise InvalidConfigurationError(f"Configuration file '{config_path}' is empty")

    if not isinstance(config_data, dict) or "sink" not in config_data:
        raise InvalidConfigurationError(
            f"Missing required 'sink' section in configuration '{config_path}'"
        )

    config_data = _expand_env_vars(config_data)

    try:
        sink = config_from_dict(config_data["sink"])
        validate_config(sink)
        logging = _build_logging_config(config_data.get("logging") or {})
    except InvalidConfigurationError as e:
        raise InvalidConfigurationError(f"Invalid configuration in '{config_path}': {e}") from e

    logger.info("config_loaded", path=config_path, topic=sink.topic)
    return AppConfig(sink=sink, logging=logging)


def describe_config(config: SinkConfig) -> Dict[str, Any]:
    """Return the effective configuration as a dict with the password masked."""
    return {
        "bootstrap_servers": list(config.bootstrap_servers),
        "topic": config.topic,
        "tls_enabled": config.tls_enabled,
        "tls_no_verify": config.tls_no_verify,
        "sasl_auth": config.sasl_auth,
        "sasl_algorithm": config.sasl_algorithm,
        "sasl_username": config.sasl_username,
        "sasl_password": "***" if config.sasl_password else "",
        "client_id": config.client_id,
        "flush_timeout": config.flush_timeout,
        "producer": dict(config.producer_overrides),
    }
