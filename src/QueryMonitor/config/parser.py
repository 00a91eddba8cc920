"""Parser domain configuration: query syntax and token analysis."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from QueryMonitor.config.common import (
    expect_bool,
    expect_str,
    expect_str_mapping,
    get_required_value,
    get_section,
)
from QueryMonitor.core.analysis import NUMERIC_TYPES

_ALLOWED_ANALYZERS = {"whitespace", "standard"}


@dataclass(frozen=True, slots=True)
class ParserConfig:
    """Analysis settings shared by the query parser and document extraction."""

    default_field: str
    analyzer: str
    lowercase: bool
    numeric_fields: Mapping[str, str]


def load_parser(raw: Mapping[str, Any]) -> ParserConfig:
    """Load parser domain config from raw mapping."""
    section = get_section(raw, "parser", required=True)
    return ParserConfig(
        default_field=expect_str(
            get_required_value(section, "default_field", "parser.default_field"), "parser.default_field"
        ),
        analyzer=expect_str(get_required_value(section, "analyzer", "parser.analyzer"), "parser.analyzer").lower(),
        lowercase=expect_bool(section.get("lowercase", False), "parser.lowercase"),
        numeric_fields={
            name: kind.strip().lower()
            for name, kind in expect_str_mapping(section.get("numeric_fields"), "parser.numeric_fields").items()
        },
    )


def check_parser(config: ParserConfig) -> None:
    """Validate parser domain constraints."""
    if not config.default_field.strip():
        raise ValueError("parser.default_field must not be empty")
    if config.analyzer not in _ALLOWED_ANALYZERS:
        raise ValueError(f"parser.analyzer must be one of {sorted(_ALLOWED_ANALYZERS)}")
    for name, kind in config.numeric_fields.items():
        if kind not in NUMERIC_TYPES:
            raise ValueError(f"parser.numeric_fields.{name} must be one of {list(NUMERIC_TYPES)}")
