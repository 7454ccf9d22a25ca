"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

CLI commands for checking configuration and publishing events.
"""

import asyncio
import json
import sys
from typing import Dict, IO, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from eventsink.cli.context import CLIContext, pass_context
from eventsink.config.settings import SinkConfig, describe_config
from eventsink.events import event_from_dict
from eventsink.exceptions import ConfigurationError, ProvisionError, PublishError
from eventsink.handler import create_handler
from eventsink.monitoring.metrics import MetricsRegistry


def _load_or_exit(ctx: CLIContext) -> SinkConfig:
    try:
        return ctx.load_sink_config()
    except ConfigurationError as e:
        click.echo(f"✗ Error: Invalid configuration: {e}", err=True)
        sys.exit(1)


@click.command(name='check')
@pass_context
def check(ctx: CLIContext):
    """
    Parse and validate the sink configuration.

    Prints the effective settings with the SASL password masked.

    Examples:
        eventsink --directives sink.conf check
        eventsink --config eventsink.yaml check
    """
    sink = _load_or_exit(ctx)

    table = Table(title="Sink configuration")
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for name, value in describe_config(sink).items():
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value)
        elif isinstance(value, dict):
            value = ", ".join(f"{k}={v}" for k, v in value.items())
        table.add_row(name, str(value))

    Console().print(table)
    click.echo("✓ Configuration is valid")


async def _publish_lines(
    sink: SinkConfig,
    events: IO[str],
    timeout: Optional[float],
    metrics: MetricsRegistry,
) -> Tuple[int, int, Dict[str, int]]:
    handler = create_handler(sink, metrics=metrics)
    published = 0
    failed = 0
    try:
        for line_number, line in enumerate(events, start=1):
            line = line.strip()
            if not line:
                continue

            try:
                event = event_from_dict(json.loads(line))
            except ValueError as e:
                failed += 1
                click.echo(f"✗ line {line_number}: invalid event: {e}", err=True)
                continue

            try:
                await handler.handle(event, timeout=timeout)
                published += 1
            except PublishError as e:
                failed += 1
                click.echo(f"✗ line {line_number}: {e}", err=True)
    finally:
        await handler.close()

    return published, failed, handler.producer.stats()


@click.command(name='publish')
@click.argument('events', type=click.File('r'), default='-')
@click.option(
    '--timeout',
    '-t',
    type=float,
    default=None,
    help='Seconds to wait for room when the local producer queue is full',
)
@click.option(
    '--print-metrics',
    is_flag=True,
    help='Print Prometheus metrics after publishing',
)
@pass_context
def publish(ctx: CLIContext, events: IO[str], timeout: Optional[float], print_metrics: bool):
    """
    Publish events read as JSON lines from EVENTS (default: stdin).

    Each line is a CloudEvents-style object with at least "source" and
    "type". Buffered messages are flushed before exit.

    Examples:
        eventsink -c eventsink.yaml publish events.jsonl
        cat events.jsonl | eventsink -d sink.conf publish
    """
    sink = _load_or_exit(ctx)
    metrics = MetricsRegistry()

    try:
        published, failed, stats = asyncio.run(_publish_lines(sink, events, timeout, metrics))
    except ConfigurationError as e:
        click.echo(f"✗ Error: Invalid configuration: {e}", err=True)
        sys.exit(1)
    except ProvisionError as e:
        click.echo(f"✗ Error: Failed to provision Kafka producer: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Published {published} event(s) to '{sink.topic}', {failed} failed")
    if ctx.verbose:
        click.echo(
            f"  delivered={stats['delivered']} delivery_failures={stats['failed']}"
        )
    if stats["failed"]:
        click.echo(f"⚠ {stats['failed']} message(s) were rejected by the broker", err=True)

    if print_metrics:
        click.echo(metrics.generate_metrics().decode("utf-8"))

    if failed:
        sys.exit(1)
