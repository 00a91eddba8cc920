"""Logging domain configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from QueryMonitor.config.common import expect_optional_str, expect_str, get_required_value, get_section

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True, slots=True)
class LogConfig:
    """Console level and optional log file.

    Attributes:
        level: Console logging level name.
        file: Path of a file that receives every record at DEBUG level, or
            None to log to the console only.
    """

    level: str
    file: str | None = None


def load_log(raw: Mapping[str, Any]) -> LogConfig:
    """Load the `log` section.

    Raises:
        TypeError: If config types are invalid.
        ValueError: If required keys are missing.
    """
    section = get_section(raw, "log", required=True)
    return LogConfig(
        level=expect_str(get_required_value(section, "level", "log.level"), "log.level").upper(),
        file=expect_optional_str(section.get("file"), "log.file"),
    )


def check_log(config: LogConfig) -> None:
    if config.level not in LOG_LEVELS:
        raise ValueError(f"log.level must be one of {list(LOG_LEVELS)}")
