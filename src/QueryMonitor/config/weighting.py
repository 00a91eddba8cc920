"""Weighting domain configuration for term extraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from QueryMonitor.config.common import (
    expect_bool,
    expect_float,
    expect_float_mapping,
    expect_str,
    get_section,
)
from QueryMonitor.extraction.weights import supported_combiners


@dataclass(frozen=True, slots=True)
class WeightingConfig:
    """Term weighting settings.

    Attributes:
        combine: How norm values are aggregated (sum, product, max).
        token_length_enabled: Whether the token length norm is applied.
        token_length_a: Saturation of the token length curve.
        token_length_k: Steepness of the token length curve.
        field_weights: Field name to weight.
        term_weights: Token to weight.
    """

    combine: str
    token_length_enabled: bool
    token_length_a: float
    token_length_k: float
    field_weights: Mapping[str, float]
    term_weights: Mapping[str, float]


def load_weighting(raw: Mapping[str, Any]) -> WeightingConfig:
    """Load weighting domain config; the whole section is optional."""
    section = get_section(raw, "weighting", required=False)
    token_length = get_section(section, "token_length", required=False)
    return WeightingConfig(
        combine=expect_str(section.get("combine", "sum"), "weighting.combine").lower(),
        token_length_enabled=expect_bool(token_length.get("enabled", True), "weighting.token_length.enabled"),
        token_length_a=expect_float(token_length.get("a", 3.0), "weighting.token_length.a"),
        token_length_k=expect_float(token_length.get("k", 0.3), "weighting.token_length.k"),
        field_weights=expect_float_mapping(section.get("field_weights"), "weighting.field_weights"),
        term_weights=expect_float_mapping(section.get("term_weights"), "weighting.term_weights"),
    )


def check_weighting(config: WeightingConfig) -> None:
    """Validate weighting domain constraints."""
    if config.combine not in supported_combiners():
        raise ValueError(f"weighting.combine must be one of {sorted(supported_combiners())}")
    if config.token_length_a < 0 or config.token_length_k < 0:
        raise ValueError("weighting.token_length.a and weighting.token_length.k must be >= 0")
    for name, weight in config.field_weights.items():
        if weight < 0:
            raise ValueError(f"weighting.field_weights.{name} must be >= 0")
    for name, weight in config.term_weights.items():
        if weight < 0:
            raise ValueError(f"weighting.term_weights.{name} must be >= 0")
