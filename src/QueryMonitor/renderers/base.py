"""Base classes for output writers.

Separates command control flow from how match results are presented.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from QueryMonitor.core.results import Matches


class OutputWriter(ABC):
    """Abstract base class for command output writers."""

    @abstractmethod
    def write_matches(self, matches: Matches) -> None:
        """Write the results of one match run."""

    @abstractmethod
    def finalize(self, action: str) -> None:
        """Finalize output (e.g., write accumulated results to file).

        Args:
            action: The CLI command name (e.g., 'match').
        """
