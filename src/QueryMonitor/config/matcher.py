"""Matcher domain configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from QueryMonitor.config.common import (
    expect_int,
    expect_str,
    get_required_value,
    get_section,
)

_ALLOWED_TYPES = {"simple", "parallel"}


@dataclass(frozen=True, slots=True)
class MatcherConfig:
    """Candidate matcher selection."""

    type: str
    max_workers: int


def load_matcher(raw: Mapping[str, Any]) -> MatcherConfig:
    section = get_section(raw, "matcher", required=True)
    return MatcherConfig(
        type=expect_str(get_required_value(section, "type", "matcher.type"), "matcher.type").lower(),
        max_workers=expect_int(section.get("max_workers", 4), "matcher.max_workers"),
    )


def check_matcher(config: MatcherConfig) -> None:
    if config.type not in _ALLOWED_TYPES:
        raise ValueError(f"matcher.type must be one of {sorted(_ALLOWED_TYPES)}")
    if config.max_workers <= 0:
        raise ValueError("matcher.max_workers must be > 0")
