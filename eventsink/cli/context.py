"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
EventSink, a product of Garudex Labs

CLI context for EventSink.

Provides shared context object and decorators for CLI commands.
"""

from pathlib import Path
from typing import Optional

import click

from eventsink.config.directives import load_directives
from eventsink.config.settings import SinkConfig, load_config, validate_config
from eventsink.logging_config import setup_logging


class CLIContext:
    """Context object for CLI commands."""

    def __init__(self):
        self.config_path: Optional[Path] = None
        self.directives_path: Optional[Path] = None
        self.log_level: Optional[str] = None
        self.verbose = False

    def load_sink_config(self) -> SinkConfig:
        """
        Load and validate the sink configuration named on the command line.

        A ``logging`` section in a structured config file replaces the CLI
        logging setup unless ``--log-level`` was given.

        Raises:
            click.UsageError: If neither or both configuration sources were given
            ConfigurationError: If the configuration cannot be loaded or is invalid
        """
        if self.config_path and self.directives_path:
            raise click.UsageError("--config and --directives are mutually exclusive")
        if self.config_path is None and self.directives_path is None:
            raise click.UsageError("one of --config or --directives is required")

        if self.directives_path is not None:
            sink = load_directives(self.directives_path)
            validate_config(sink)
            return sink

        app_config = load_config(str(self.config_path))
        setup_logging(
            level=self.log_level or app_config.logging.level,
            log_file=Path(app_config.logging.file) if app_config.logging.file else None,
            json_format=app_config.logging.format == "json",
        )
        return app_config.sink


pass_context = click.make_pass_decorator(CLIContext, ensure=True)
