"""Query parsing collaborators.

The monitor only depends on the `QueryParser` protocol; the Lucene classic
syntax parser is the default implementation.
"""

from __future__ import annotations

from typing import Protocol

from QueryMonitor.core.query import QueryNode
from QueryMonitor.parsing.lucene import LuceneQueryParser


class QueryParser(Protocol):
    """Protocol for turning query text into a query tree."""

    def parse(self, text: str) -> QueryNode:
        """Parse query text.

        Raises:
            QueryParseError: If the text cannot be parsed.
        """
        raise NotImplementedError


__all__ = [
    "LuceneQueryParser",
    "QueryParser",
]
