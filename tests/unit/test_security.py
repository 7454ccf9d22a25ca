"""
Unit tests for Kafka transport security.
"""

import dataclasses

import pytest

from eventsink.config.settings import SASLAlgorithm
from eventsink.exceptions import ProvisionError
from eventsink.kafka.security import (
    ScramMechanism,
    TLSSettings,
    TransportSecurity,
    saslprep,
)


class TestSaslprep:
    """Test RFC 4013 string preparation."""

    def test_ascii_unchanged(self):
        assert saslprep("eventsink") == "eventsink"

    def test_non_ascii_space_mapped_to_space(self):
        assert saslprep("pass\u00a0word") == "pass word"

    def test_soft_hyphen_removed(self):
        assert saslprep("I\u00adX") == "IX"

    def test_nfkc_normalization(self):
        # RFC 4013 section 3 examples
        assert saslprep("\u00aa") == "a"
        assert saslprep("\u2168") == "IX"

    def test_control_character_rejected(self):
        with pytest.raises(ValueError, match="prohibited character U\\+0007"):
            saslprep("\u0007")

    def test_mixed_bidi_rejected(self):
        with pytest.raises(ValueError):
            saslprep("\u06271")


class TestTLSSettings:
    """Test TLS producer settings."""

    def test_verify_peer_adds_nothing(self):
        assert TLSSettings().producer_settings() == {}

    def test_no_verify_disables_verification(self):
        settings = TLSSettings(verify_peer=False).producer_settings()

        assert settings == {
            "enable.ssl.certificate.verification": False,
            "ssl.endpoint.identification.algorithm": "none",
        }


class TestScramMechanism:
    """Test SCRAM mechanism construction."""

    @pytest.mark.parametrize("algorithm,mechanism", [
        ("sha256", "SCRAM-SHA-256"),
        ("sha512", "SCRAM-SHA-512"),
    ])
    def test_producer_settings(self, algorithm, mechanism):
        scram = ScramMechanism.from_credentials(algorithm, "user", "pass")

        assert scram.algorithm == SASLAlgorithm(algorithm)
        assert scram.producer_settings() == {
            "sasl.mechanism": mechanism,
            "sasl.username": "user",
            "sasl.password": "pass",
        }

    def test_invalid_algorithm(self):
        with pytest.raises(ProvisionError, match="invalid sasl algorithm: md5"):
            ScramMechanism.from_credentials("md5", "user", "pass")

    def test_prohibited_username(self):
        with pytest.raises(ProvisionError, match="invalid sasl username"):
            ScramMechanism.from_credentials("sha256", "us\u0007er", "pass")

    def test_password_empty_after_preparation(self):
        with pytest.raises(ProvisionError, match="invalid sasl password: empty"):
            ScramMechanism.from_credentials("sha256", "user", "\u00ad")

    def test_credentials_passed_through_unchanged(self):
        """Test credentials reach the client without SASLprep mapping."""
        scram = ScramMechanism.from_credentials("sha512", "user", "pass\u00a0word")

        assert scram.password == "pass\u00a0word"

    def test_repr_hides_password(self):
        scram = ScramMechanism.from_credentials("sha512", "user", "s3cret")

        assert "s3cret" not in repr(scram)


class TestTransportSecurity:
    """Test transport derivation from configuration."""

    def test_plaintext(self, sink_config):
        security = TransportSecurity.from_config(sink_config)

        assert security.tls is None
        assert security.sasl is None
        assert security.producer_settings() == {"security.protocol": "PLAINTEXT"}

    def test_tls_only(self, sink_config):
        security = TransportSecurity.from_config(dataclasses.replace(sink_config, tls_enabled=True))

        assert security.tls == TLSSettings(verify_peer=True)
        assert security.producer_settings() == {"security.protocol": "SSL"}

    def test_tls_no_verify(self, sink_config):
        config = dataclasses.replace(sink_config, tls_enabled=True, tls_no_verify=True)

        settings = TransportSecurity.from_config(config).producer_settings()

        assert settings["security.protocol"] == "SSL"
        assert settings["enable.ssl.certificate.verification"] is False
        assert settings["ssl.endpoint.identification.algorithm"] == "none"

    def test_tls_no_verify_ignored_without_tls(self, sink_config):
        """Test tls_no_verify has no effect while TLS is off."""
        config = dataclasses.replace(sink_config, tls_no_verify=True)

        assert TransportSecurity.from_config(config).producer_settings() == {
            "security.protocol": "PLAINTEXT",
        }

    def test_sasl_without_tls(self, sasl_config):
        config = dataclasses.replace(sasl_config, tls_enabled=False)

        security = TransportSecurity.from_config(config)

        assert security.security_protocol == "SASL_PLAINTEXT"
        assert security.producer_settings()["sasl.mechanism"] == "SCRAM-SHA-512"

    def test_sasl_with_tls(self, sasl_config):
        settings = TransportSecurity.from_config(sasl_config).producer_settings()

        assert settings == {
            "security.protocol": "SASL_SSL",
            "sasl.mechanism": "SCRAM-SHA-512",
            "sasl.username": "eventsink",
            "sasl.password": "s3cret",
        }

    def test_sasl_failure_raises_provision_error(self, sasl_config):
        config = dataclasses.replace(sasl_config, sasl_username="bad\u0000name")

        with pytest.raises(ProvisionError):
            TransportSecurity.from_config(config)
