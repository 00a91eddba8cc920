"""Command runner for coordinating CLI execution.

Manages component lifecycle, resource cleanup, logging configuration,
and error handling for command execution.
"""

from __future__ import annotations

from typing import Callable

import click

from QueryMonitor.cli.commands import MonitorCommands
from QueryMonitor.config import AppConfig
from QueryMonitor.services import create_monitor
from QueryMonitor.storage import create_storage
from QueryMonitor.utils.log import configure_logging, log


class CommandRunner:
    """Orchestrates command execution with proper resource management.

    Handles logging configuration, monitor creation, database context
    management, and error handling for CLI commands.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def run(self, action: str, command: Callable[[MonitorCommands], None]) -> None:
        """Execute one command with full resource management.

        Args:
            action: The CLI command name (e.g., 'match').
            command: Receives the bootstrapped commands object.

        Raises:
            click.Abort: When the command fails.
        """
        configure_logging(level=self.config.log.level, log_file=self.config.log.file)
        try:
            db_manager, query_store = create_storage(self.config)
            monitor = create_monitor(self.config, store=query_store)
            commands = MonitorCommands(config=self.config, monitor=monitor)

            if db_manager:
                with db_manager:
                    commands.bootstrap()
                    command(commands)
            else:
                commands.bootstrap()
                command(commands)
        except Exception as e:  # noqa: BLE001 - cli boundary
            log.error("%s failed: %s", action.capitalize(), e)
            raise click.Abort from e
