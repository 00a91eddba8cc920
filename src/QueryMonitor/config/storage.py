"""Storage domain configuration for query persistence."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from QueryMonitor.config.common import (
    expect_bool,
    expect_str,
    get_required_value,
    get_section,
)


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Storage configuration."""

    enabled: bool
    db_path: str


def load_storage(raw: Mapping[str, Any]) -> StorageConfig:
    """Load storage domain config from raw mapping."""
    section = get_section(raw, "storage", required=True)
    return StorageConfig(
        enabled=expect_bool(get_required_value(section, "enabled", "storage.enabled"), "storage.enabled"),
        db_path=expect_str(get_required_value(section, "db_path", "storage.db_path"), "storage.db_path"),
    )


def check_storage(config: StorageConfig) -> None:
    """Validate storage domain constraints."""
    if not config.db_path.strip():
        raise ValueError("storage.db_path must not be empty")
