"""CLI package for QueryMonitor command orchestration."""

from __future__ import annotations

__all__ = ["CommandRunner", "main"]

from QueryMonitor.cli.runner import CommandRunner
from QueryMonitor.cli.ui import cli


def main() -> None:
    """Run QueryMonitor CLI.

    Entry point referenced by console script in pyproject.toml.
    """
    cli()
