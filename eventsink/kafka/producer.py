"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

Kafka producer provisioning and asynchronous submission.

The producer is built once from a validated SinkConfig and shared by all
publish calls. Submitting a message only enqueues it on the local
librdkafka queue; broker acknowledgments arrive later through the delivery
callback, which logs failures and never raises them to the caller.
"""

import threading
from typing import Any, Callable, Dict, Optional

from confluent_kafka import KafkaException, Producer

from eventsink.config.settings import SinkConfig
from eventsink.events import OutboundMessage
from eventsink.exceptions import ProducerQueueFullError, ProvisionError, SubmissionError
from eventsink.kafka.security import TransportSecurity
from eventsink.logging_config import get_logger, log_delivery_report
from eventsink.monitoring.metrics import MetricsRegistry

logger = get_logger(__name__)


def build_producer_settings(config: SinkConfig, security: TransportSecurity) -> Dict[str, Any]:
    """
    Build the librdkafka producer configuration.

    Args:
        config: Validated sink configuration
        security: Transport security derived from the configuration

    Returns:
        Producer configuration dict
    """
    settings: Dict[str, Any] = {
        "bootstrap.servers": ",".join(config.bootstrap_servers),
        "client.id": config.client_id,
    }
    settings.update(config.producer_overrides)
    settings.update(security.producer_settings())
    return settings


class EventProducer:
    """
    Long-lived, thread-safe wrapper over a confluent_kafka Producer.

    Publishes in asynchronous mode: ``submit`` returns once the message is
    on the local queue. Delivery outcomes are logged and counted by the
    delivery callback.
    """

    def __init__(
        self,
        producer: Any,
        config: SinkConfig,
        security: TransportSecurity,
        metrics: Optional[MetricsRegistry] = None,
    ):
        """
        Args:
            producer: Underlying confluent_kafka Producer
            config: Sink configuration the producer was built from
            security: Transport security attached to the producer
            metrics: Optional metrics registry
        """
        self.config = config
        self.security = security
        self.metrics = metrics
        self._producer = producer
        self._lock = threading.RLock()
        self._closed = False
        self._enqueued = 0
        self._delivered = 0
        self._failed = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, message: OutboundMessage) -> None:
        """
        Enqueue a message for asynchronous delivery.

        Args:
            message: Message to enqueue

        Raises:
            ProducerQueueFullError: If the local queue is full
            SubmissionError: If the producer is closed or rejects the message locally
        """
        with self._lock:
            if self._closed:
                raise SubmissionError("failed to write event to Kafka: producer is closed")

            try:
                self._producer.produce(
                    topic=message.topic,
                    key=message.key,
                    value=message.value,
                    timestamp=message.timestamp_ms,
                    on_delivery=self._on_delivery,
                )
            except BufferError as e:
                raise ProducerQueueFullError(
                    f"failed to write event to Kafka: local queue is full ({e})"
                ) from e
            except (KafkaException, TypeError, ValueError) as e:
                raise SubmissionError(f"failed to write event to Kafka: {e}") from e

            self._enqueued += 1

        # Serve delivery callbacks for earlier messages without blocking
        self._producer.poll(0)

    def poll(self, timeout: float = 0.0) -> int:
        """Serve pending delivery callbacks, waiting up to ``timeout`` seconds."""
        if self._closed:
            return 0
        return self._producer.poll(timeout)

    def _on_delivery(self, err, msg) -> None:
        topic = msg.topic() if msg is not None else None
        partition = msg.partition() if msg is not None else None
        offset = msg.offset() if msg is not None and err is None else None
        key = msg.key() if msg is not None else None

        log_delivery_report(
            logger,
            topic=topic,
            partition=partition,
            offset=offset,
            error=err,
            key=key.decode("utf-8", errors="replace") if isinstance(key, bytes) else key,
        )

        with self._lock:
            if err is None:
                self._delivered += 1
            else:
                self._failed += 1

        if self.metrics is not None:
            self.metrics.record_delivery(topic or self.config.topic, success=err is None)

    def stats(self) -> Dict[str, int]:
        """Return submission and delivery counters."""
        with self._lock:
            stats = {
                "enqueued": self._enqueued,
                "delivered": self._delivered,
                "failed": self._failed,
            }
        stats["in_queue"] = 0 if self._closed else len(self._producer)
        return stats

    def close(self, timeout: Optional[float] = None) -> int:
        """
        Flush buffered messages and close the producer.

        Flushing is best-effort: messages still queued after ``timeout``
        seconds are dropped and counted in the return value.

        Args:
            timeout: Flush timeout in seconds (defaults to config.flush_timeout)

        Returns:
            Number of messages that were not delivered before the timeout
        """
        with self._lock:
            if self._closed:
                return 0
            self._closed = True

        timeout = self.config.flush_timeout if timeout is None else timeout
        remaining = self._producer.flush(timeout)
        if remaining > 0:
            logger.warning(
                "producer_closed_with_pending_messages",
                remaining=remaining,
                timeout=timeout,
            )
        else:
            logger.info("producer_closed", **self.stats())
        return remaining


def provision_producer(
    config: SinkConfig,
    producer_factory: Optional[Callable[[Dict[str, Any]], Any]] = None,
    metrics: Optional[MetricsRegistry] = None,
) -> EventProducer:
    """
    Build the producer and its transport from a validated configuration.

    Args:
        config: Validated sink configuration
        producer_factory: Callable building the client from a settings dict
            (defaults to confluent_kafka.Producer)
        metrics: Optional metrics registry

    Returns:
        EventProducer bound to the configured brokers

    Raises:
        ProvisionError: If the SASL mechanism or the client cannot be constructed
    """
    security = TransportSecurity.from_config(config)
    settings = build_producer_settings(config, security)

    factory = producer_factory or Producer
    try:
        client = factory(settings)
    except (KafkaException, TypeError, ValueError) as e:
        raise ProvisionError(f"failed to create Kafka producer: {e}") from e

    logger.info(
        "producer_provisioned",
        bootstrap_servers=list(config.bootstrap_servers),
        topic=config.topic,
        security_protocol=security.security_protocol,
    )
    return EventProducer(client, config, security, metrics=metrics)
