"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

CLI entry point for EventSink.

Provides the composition root for operators: configuration checks and
publishing events from JSON lines through a provisioned handler.
"""

from pathlib import Path
from typing import Optional

import click

from eventsink._version import __version__
from eventsink.cli.context import CLIContext, pass_context
from eventsink.logging_config import setup_logging


@click.group()
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help='Path to YAML or JSON configuration file with a "sink" section',
)
@click.option(
    '--directives',
    '-d',
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help='Path to a directive block file',
)
@click.option(
    '--log-level',
    '-l',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'], case_sensitive=False),
    default=None,
    help='Set logging level (default: WARNING, or the config file setting)',
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose output',
)
@click.version_option(version=__version__, prog_name='eventsink')
@pass_context
def cli(
    ctx: CLIContext,
    config: Optional[Path],
    directives: Optional[Path],
    log_level: Optional[str],
    verbose: bool,
):
    """
    EventSink - forward host lifecycle events to a Kafka topic.

    Configure the sink with either --config or --directives.
    """
    ctx.config_path = config
    ctx.directives_path = directives
    ctx.log_level = log_level.upper() if log_level else None
    ctx.verbose = verbose

    # Console logging until a config file supplies its own settings
    setup_logging(
        level=ctx.log_level or ("INFO" if verbose else "WARNING"),
        json_format=False,
    )


from eventsink.cli.publish import check, publish
cli.add_command(check)
cli.add_command(publish)


if __name__ == '__main__':
    cli()
