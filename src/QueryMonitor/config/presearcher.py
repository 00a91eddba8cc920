"""Presearcher domain configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from QueryMonitor.config.common import (
    expect_optional_str,
    expect_str,
    get_required_value,
    get_section,
)
from QueryMonitor.presearcher.registry import supported_presearcher_names

_ALLOWED_TYPES = frozenset(supported_presearcher_names())


@dataclass(frozen=True, slots=True)
class PresearcherConfig:
    """Presearcher selection and metadata filtering."""

    type: str
    filter_field: str | None


def load_presearcher(raw: Mapping[str, Any]) -> PresearcherConfig:
    """Load presearcher domain config from raw mapping."""
    section = get_section(raw, "presearcher", required=True)
    return PresearcherConfig(
        type=expect_str(get_required_value(section, "type", "presearcher.type"), "presearcher.type").lower(),
        filter_field=expect_optional_str(section.get("filter_field"), "presearcher.filter_field"),
    )


def check_presearcher(config: PresearcherConfig) -> None:
    if config.type not in _ALLOWED_TYPES:
        raise ValueError(f"presearcher.type must be one of {sorted(_ALLOWED_TYPES)}")
