"""Candidate matchers: exact confirmation of presearcher candidates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from QueryMonitor.matchers.base import CandidateMatcher, MatcherFactory, MatchOutcome
from QueryMonitor.matchers.evaluate import evaluate
from QueryMonitor.matchers.parallel import ParallelMatcher
from QueryMonitor.matchers.simple import SimpleMatcher

if TYPE_CHECKING:
    from QueryMonitor.config import MatcherConfig


def create_matcher_factory(config: MatcherConfig) -> MatcherFactory:
    """Create the matcher factory selected by configuration.

    Args:
        config: Matcher section of the application configuration.

    Returns:
        A zero-argument callable producing matchers.

    Raises:
        ValueError: If the matcher type is unknown.
    """
    if config.type == "simple":
        return SimpleMatcher
    if config.type == "parallel":
        return ParallelMatcher.factory(SimpleMatcher, max_workers=config.max_workers)
    raise ValueError(f"Unsupported matcher: {config.type}")


__all__ = [
    "CandidateMatcher",
    "MatcherFactory",
    "MatchOutcome",
    "ParallelMatcher",
    "SimpleMatcher",
    "create_matcher_factory",
    "evaluate",
]
