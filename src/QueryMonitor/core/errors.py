"""Error types raised by the query monitor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


class QueryMonitorError(Exception):
    """Base class for all QueryMonitor errors."""


class QueryParseError(QueryMonitorError, ValueError):
    """Query text could not be converted into a query tree.

    Attributes:
        position: Character offset in the query text where parsing failed,
            or None when the failure is not tied to a position.
    """

    def __init__(self, message: str, *, position: int | None = None) -> None:
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)
        self.position = position


class QueryExtractionError(QueryMonitorError, RuntimeError):
    """Term extraction met a query tree it cannot handle."""


class MatchFailure(QueryMonitorError):
    """A matcher failed while confirming one candidate query.

    Recorded per query id in the match result; never raised by ``Monitor.match``.
    """

    def __init__(self, query_id: str, error: BaseException) -> None:
        super().__init__(f"Matching query {query_id} failed: {error}")
        self.query_id = query_id
        self.error = error


@dataclass(frozen=True, slots=True)
class UpdateFailure:
    """Why one query of an update batch was rejected.

    Attributes:
        kind: ``parse`` or ``extraction``.
        error: The underlying exception.
    """

    kind: str
    error: BaseException

    def __str__(self) -> str:
        return f"{self.kind}: {self.error}"


class UpdateError(QueryMonitorError):
    """Aggregate error for queries rejected from an update batch."""

    def __init__(self, failures: Mapping[str, UpdateFailure]) -> None:
        details = "; ".join(f"{query_id} ({failure})" for query_id, failure in failures.items())
        super().__init__(f"{len(failures)} queries could not be registered: {details}")
        self.failures = dict(failures)
