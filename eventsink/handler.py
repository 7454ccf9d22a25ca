"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Kafka event handler.

KafkaEventHandler is the unit a host wires into its event bus: it is built
by ``create_handler`` (validate, then provision the producer once) and then
receives every host event through ``handle``.
"""

import asyncio
from typing import Any, Callable, Dict, Optional

from eventsink.config.settings import SinkConfig, validate_config
from eventsink.events import HostEvent, build_message
from eventsink.exceptions import (
    ConfigurationError,
    EventSerializationError,
    ProducerQueueFullError,
    ProvisionError,
    SubmissionError,
)
from eventsink.kafka.producer import EventProducer, provision_producer
from eventsink.logging_config import get_logger, log_startup_failure
from eventsink.monitoring.metrics import MetricsRegistry, PublishErrorType

logger = get_logger(__name__)

# Seconds between local queue checks while waiting for room
_QUEUE_WAIT_INTERVAL = 0.05


class KafkaEventHandler:
    """
    Forwards host events to a Kafka topic.

    ``handle`` may be awaited concurrently from any number of tasks; all
    calls share the single producer created by ``provision``.
    """

    def __init__(
        self,
        config: SinkConfig,
        producer_factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
        metrics: Optional[MetricsRegistry] = None,
    ):
        """
        Args:
            config: Sink configuration, validated by ``provision``
            producer_factory: Optional factory for the underlying client
            metrics: Optional metrics registry
        """
        self.config = config
        self.metrics = metrics
        self._producer_factory = producer_factory
        self._producer: Optional[EventProducer] = None

    @property
    def producer(self) -> Optional[EventProducer]:
        return self._producer

    def provision(self) -> None:
        """
        Validate the configuration, then build the producer and transport.
        May only succeed once.

        Raises:
            InvalidConfigurationError: If the configuration is invalid
            ProvisionError: If already provisioned or the transport cannot be built
        """
        if self._producer is not None:
            raise ProvisionError("kafka handler is already provisioned")

        try:
            validate_config(self.config)
        except ConfigurationError as e:
            log_startup_failure(logger, "config", e)
            raise

        try:
            self._producer = provision_producer(
                self.config,
                producer_factory=self._producer_factory,
                metrics=self.metrics,
            )
        except ProvisionError as e:
            log_startup_failure(logger, "provision", e, topic=self.config.topic)
            raise

    async def handle(self, event: HostEvent, timeout: Optional[float] = None) -> None:
        """
        Serialize an event and enqueue it for asynchronous delivery.

        Returns once the message is on the local producer queue. Broker-side
        delivery failures are logged by the producer and are not reported here.

        Args:
            event: Host event to publish
            timeout: Seconds to wait for room on a full local queue; ``None``
                fails immediately when the queue is full

        Raises:
            EventSerializationError: If the event cannot be encoded
            SubmissionError: If the message cannot be enqueued
        """
        producer = self._producer
        if producer is None:
            raise SubmissionError("kafka handler is not provisioned")

        try:
            message = build_message(event, self.config.topic)
        except EventSerializationError as e:
            self._record_error(PublishErrorType.SERIALIZATION)
            logger.warning("event_serialization_failed", event_id=event.id, error=str(e))
            raise

        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while True:
            try:
                producer.submit(message)
                break
            except ProducerQueueFullError as e:
                remaining = 0.0 if deadline is None else deadline - loop.time()
                if remaining <= 0:
                    self._record_error(PublishErrorType.SUBMISSION)
                    logger.warning("event_submission_failed", event_id=event.id, error=str(e))
                    raise
                producer.poll(0)
                await asyncio.sleep(min(_QUEUE_WAIT_INTERVAL, remaining))
            except SubmissionError as e:
                self._record_error(PublishErrorType.SUBMISSION)
                logger.warning("event_submission_failed", event_id=event.id, error=str(e))
                raise

        if self.metrics is not None:
            self.metrics.record_event_published(message.topic)
        logger.debug(
            "event_published",
            event_id=event.id,
            event_type=event.type,
            topic=message.topic,
            size=len(message.value),
        )

    def _record_error(self, error_type: PublishErrorType) -> None:
        if self.metrics is not None:
            self.metrics.record_publish_error(error_type)

    async def close(self) -> int:
        """
        Flush buffered messages and release the producer.

        Returns:
            Number of messages still undelivered when the flush timed out
        """
        if self._producer is None:
            return 0
        logger.info("closing_kafka_handler", topic=self.config.topic)
        return await asyncio.to_thread(self._producer.close)

    async def __aenter__(self):
        if self._producer is None:
            self.provision()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_handler(
    config: SinkConfig,
    producer_factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
    metrics: Optional[MetricsRegistry] = None,
) -> KafkaEventHandler:
    """
    Validate a configuration and return a provisioned handler.

    This is the single entry point a host uses to obtain a handler.

    Args:
        config: Sink configuration (parsed from directives or structured config)
        producer_factory: Optional factory for the underlying client
        metrics: Optional metrics registry

    Returns:
        Provisioned KafkaEventHandler

    Raises:
        InvalidConfigurationError: If the configuration is invalid
        ProvisionError: If the producer cannot be provisioned
    """
    handler = KafkaEventHandler(config, producer_factory=producer_factory, metrics=metrics)
    handler.provision()
    return handler
