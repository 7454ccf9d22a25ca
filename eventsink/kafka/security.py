"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Transport security for the Kafka producer.

Derives TLS and SASL/SCRAM settings from a validated SinkConfig and renders
them as librdkafka producer settings.
"""

import stringprep
import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, Optional

from eventsink.config.settings import SASLAlgorithm, SinkConfig
from eventsink.exceptions import ProvisionError
from eventsink.logging_config import get_logger

logger = get_logger(__name__)


_PROHIBITED_TABLES = (
    stringprep.in_table_c12,
    stringprep.in_table_c21_c22,
    stringprep.in_table_c3,
    stringprep.in_table_c4,
    stringprep.in_table_c5,
    stringprep.in_table_c6,
    stringprep.in_table_c7,
    stringprep.in_table_c8,
    stringprep.in_table_c9,
)


def saslprep(value: str) -> str:
    """
    Prepare a SCRAM username or password (RFC 4013 SASLprep).

    Args:
        value: Username or password

    Returns:
        The normalized string

    Raises:
        ValueError: If the string contains prohibited code points or
            violates the bidirectional text rules
    """
    mapped = "".join(
        " " if stringprep.in_table_c12(char) else char
        for char in value
        if not stringprep.in_table_b1(char)
    )
    prepared = unicodedata.normalize("NFKC", mapped)

    for char in prepared:
        if any(in_table(char) for in_table in _PROHIBITED_TABLES):
            raise ValueError(f"prohibited character U+{ord(char):04X}")

    if any(stringprep.in_table_d1(char) for char in prepared):
        if any(stringprep.in_table_d2(char) for char in prepared):
            raise ValueError("mixed left-to-right and right-to-left text")
        if not (stringprep.in_table_d1(prepared[0]) and stringprep.in_table_d1(prepared[-1])):
            raise ValueError("right-to-left text must start and end with a right-to-left character")

    return prepared


@dataclass(frozen=True)
class TLSSettings:
    """TLS context for the broker connection."""

    verify_peer: bool = True

    def producer_settings(self) -> Dict[str, Any]:
        if self.verify_peer:
            return {}
        return {
            "enable.ssl.certificate.verification": False,
            "ssl.endpoint.identification.algorithm": "none",
        }


@dataclass(frozen=True)
class ScramMechanism:
    """SASL/SCRAM authentication mechanism."""

    algorithm: SASLAlgorithm
    username: str
    password: str

    @classmethod
    def from_credentials(cls, algorithm: str, username: str, password: str) -> "ScramMechanism":
        """
        Build a SCRAM mechanism, checking that the credentials can be prepared.

        Raises:
            ProvisionError: If the algorithm is unknown or the credentials
                cannot be prepared for SCRAM hashing
        """
        try:
            method = SASLAlgorithm(algorithm)
        except ValueError:
            raise ProvisionError(f"invalid sasl algorithm: {algorithm}") from None

        for label, value in (("username", username), ("password", password)):
            try:
                prepared = saslprep(value)
            except ValueError as e:
                raise ProvisionError(f"invalid sasl {label}: {e}") from e
            if not prepared:
                raise ProvisionError(f"invalid sasl {label}: empty after preparation")

        return cls(algorithm=method, username=username, password=password)

    def producer_settings(self) -> Dict[str, Any]:
        return {
            "sasl.mechanism": self.algorithm.mechanism,
            "sasl.username": self.username,
            "sasl.password": self.password,
        }

    def __repr__(self) -> str:
        return f"ScramMechanism(algorithm={self.algorithm.value!r}, username={self.username!r})"


@dataclass(frozen=True)
class TransportSecurity:
    """TLS and SASL material owned by the producer."""

    tls: Optional[TLSSettings] = None
    sasl: Optional[ScramMechanism] = None

    @classmethod
    def from_config(cls, config: SinkConfig) -> "TransportSecurity":
        """
        Derive transport security from a validated configuration.

        Raises:
            ProvisionError: If the SASL mechanism cannot be constructed
        """
        tls = None
        if config.tls_enabled:
            tls = TLSSettings(verify_peer=not config.tls_no_verify)
            if not tls.verify_peer:
                logger.warning(
                    "tls_verification_disabled",
                    message="broker certificate verification is disabled; use for testing only",
                )

        sasl = None
        if config.sasl_auth:
            sasl = ScramMechanism.from_credentials(
                config.sasl_algorithm, config.sasl_username, config.sasl_password
            )

        return cls(tls=tls, sasl=sasl)

    @property
    def security_protocol(self) -> str:
        if self.sasl is not None:
            return "SASL_SSL" if self.tls is not None else "SASL_PLAINTEXT"
        return "SSL" if self.tls is not None else "PLAINTEXT"

    def producer_settings(self) -> Dict[str, Any]:
        """Render librdkafka settings for this transport."""
        settings: Dict[str, Any] = {"security.protocol": self.security_protocol}
        if self.tls is not None:
            settings.update(self.tls.producer_settings())
        if self.sasl is not None:
            settings.update(self.sasl.producer_settings())
        return settings
