"""
Unit tests for exception hierarchy.
"""

import pytest

from eventsink.exceptions import (
    ConfigurationError,
    ConfigurationLoadError,
    DirectiveParseError,
    EventSerializationError,
    EventSinkError,
    InvalidConfigurationError,
    ProducerQueueFullError,
    ProvisionError,
    PublishError,
    SubmissionError,
)


class TestExceptionHierarchy:
    """Test that exception hierarchy is correctly defined."""

    def test_base_exception(self):
        """Test that EventSinkError is the base exception."""
        error = EventSinkError("test error")
        assert isinstance(error, Exception)
        assert str(error) == "test error"

    def test_configuration_errors_inherit_from_base(self):
        assert issubclass(ConfigurationError, EventSinkError)
        assert issubclass(InvalidConfigurationError, ConfigurationError)
        assert issubclass(ConfigurationLoadError, ConfigurationError)
        assert issubclass(DirectiveParseError, ConfigurationError)

    def test_provision_error_is_not_a_configuration_error(self):
        assert issubclass(ProvisionError, EventSinkError)
        assert not issubclass(ProvisionError, ConfigurationError)

    def test_publish_errors_inherit_from_base(self):
        assert issubclass(PublishError, EventSinkError)
        assert issubclass(EventSerializationError, PublishError)
        assert issubclass(SubmissionError, PublishError)
        assert issubclass(ProducerQueueFullError, SubmissionError)

    def test_catch_by_base_class(self):
        with pytest.raises(PublishError):
            raise ProducerQueueFullError("local queue is full")


class TestDirectiveParseError:
    """Test line-number reporting."""

    def test_with_line(self):
        error = DirectiveParseError("unsupported directive: foo", line=4)

        assert error.line == 4
        assert str(error) == "line 4: unsupported directive: foo"

    def test_without_line(self):
        error = DirectiveParseError("unclosed block")

        assert error.line is None
        assert str(error) == "unclosed block"
