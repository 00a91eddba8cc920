"""Base classes for candidate matchers.

A matcher confirms presearcher candidates by running the exact query against
the document. Failures are isolated per candidate: a query that raises is
recorded as a `MatchFailure` and the remaining candidates are still matched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from typing import Any, Iterable

from QueryMonitor.core.errors import MatchFailure
from QueryMonitor.core.models import AnalyzedDocument, StoredQuery
from QueryMonitor.utils.log import log

QueryLookup = Callable[[str], "StoredQuery | None"]


@dataclass(slots=True)
class MatchOutcome:
    """Result of confirming a set of candidates against one document.

    Attributes:
        payloads: Query id to match payload, for confirmed matches only.
        errors: Query id to the failure raised while matching it.
    """

    payloads: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, MatchFailure] = field(default_factory=dict)

    def merge(self, other: MatchOutcome) -> None:
        self.payloads.update(other.payloads)
        self.errors.update(other.errors)


class CandidateMatcher(ABC):
    """Confirm candidate queries against a document."""

    def confirm(
        self,
        candidate_ids: Iterable[str],
        document: AnalyzedDocument,
        lookup: QueryLookup,
    ) -> MatchOutcome:
        """Run every candidate query against the document.

        Args:
            candidate_ids: Ids selected by the presearcher.
            document: The analyzed document.
            lookup: Resolves an id to its stored query; ids that no longer
                resolve are skipped.

        Returns:
            Payloads of matching queries and per-id failures.
        """
        outcome = MatchOutcome()
        for query_id in sorted(candidate_ids):
            stored = lookup(query_id)
            if stored is None:
                continue
            try:
                payload = self.match_query(stored, document)
            except Exception as error:  # noqa: BLE001 - one query must not abort the batch
                log.warning("Matching failed: query=%s document=%s error=%s", query_id, document.id, error)
                outcome.errors[query_id] = MatchFailure(query_id, error)
                continue
            if payload is not None:
                outcome.payloads[query_id] = payload
        return outcome

    @abstractmethod
    def match_query(self, query: StoredQuery, document: AnalyzedDocument) -> Any | None:
        """Return the match payload, or None if the query does not match."""


MatcherFactory = Callable[[], CandidateMatcher]
