"""Query term extraction and weighting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from QueryMonitor.extraction.analyzer import ANY, ExtractionResult, QueryAnalyzer
from QueryMonitor.extraction.weights import (
    FieldWeightNorm,
    TermFrequencyNorm,
    TermWeightNorm,
    TermWeightor,
    TokenLengthNorm,
    WeightNorm,
    default_weightor,
)

if TYPE_CHECKING:
    from QueryMonitor.config import WeightingConfig


def create_weightor(config: WeightingConfig) -> TermWeightor:
    """Build a weightor from the weighting configuration.

    Args:
        config: Weighting section of the application configuration.

    Returns:
        Configured TermWeightor.
    """
    norms: list[WeightNorm] = []
    if config.token_length_enabled:
        norms.append(TokenLengthNorm(a=config.token_length_a, k=config.token_length_k))
    for field, weight in config.field_weights.items():
        norms.append(FieldWeightNorm(weight, [field]))
    for term, weight in config.term_weights.items():
        norms.append(TermWeightNorm(weight, [term]))
    return TermWeightor(*norms, combine=config.combine)


__all__ = [
    "ANY",
    "ExtractionResult",
    "QueryAnalyzer",
    "TermWeightor",
    "WeightNorm",
    "TokenLengthNorm",
    "FieldWeightNorm",
    "TermWeightNorm",
    "TermFrequencyNorm",
    "default_weightor",
    "create_weightor",
]
