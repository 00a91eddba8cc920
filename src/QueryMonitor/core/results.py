"""Results returned by monitor operations."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from QueryMonitor.core.errors import MatchFailure, UpdateError, UpdateFailure


@dataclass(frozen=True, slots=True)
class UpdateReport:
    """Outcome of one `Monitor.update` batch.

    Attributes:
        succeeded: Ids committed by the batch, in submission order.
        failures: Id to the reason it was rejected.
    """

    succeeded: tuple[str, ...] = ()
    failures: Mapping[str, UpdateFailure] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "failures", MappingProxyType(dict(self.failures)))

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_errors(self) -> None:
        """Raise an aggregate `UpdateError` if any query was rejected."""
        if self.failures:
            raise UpdateError(self.failures)


@dataclass(frozen=True, slots=True)
class DocumentMatches:
    """Matches of one document.

    Attributes:
        document_id: Id of the matched document.
        matches: Query id to the matcher's payload.
        errors: Query id to the failure raised while matching it.
        candidates: Ids the presearcher selected.
        error: Why the document itself could not be analyzed; no query
            was run against it when set.
    """

    document_id: str
    matches: Mapping[str, Any] = field(default_factory=dict)
    errors: Mapping[str, MatchFailure] = field(default_factory=dict)
    candidates: frozenset[str] = frozenset()
    error: BaseException | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "matches", MappingProxyType(dict(self.matches)))
        object.__setattr__(self, "errors", MappingProxyType(dict(self.errors)))

    def __len__(self) -> int:
        return len(self.matches)

    def __contains__(self, query_id: object) -> bool:
        return query_id in self.matches


@dataclass(frozen=True, slots=True)
class Matches:
    """Results of matching one or more documents.

    Attributes:
        documents: Document id to its matches.
        queries_run: Total number of candidate queries handed to the matcher.
        presearch_time_ms: Time spent selecting candidates.
        match_time_ms: Time spent in the matcher.
    """

    documents: Mapping[str, DocumentMatches] = field(default_factory=dict)
    queries_run: int = 0
    presearch_time_ms: float = 0.0
    match_time_ms: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "documents", MappingProxyType(dict(self.documents)))

    def __iter__(self) -> Iterator[DocumentMatches]:
        return iter(self.documents.values())

    def matches_for(self, document_id: str) -> DocumentMatches:
        """Return the matches of one document; empty if it was not matched."""
        return self.documents.get(document_id, DocumentMatches(document_id=document_id))

    def match_count(self, document_id: str) -> int:
        return len(self.matches_for(document_id))

    @property
    def errors(self) -> dict[tuple[str, str], MatchFailure]:
        """`(document id, query id)` to failure, across all documents."""
        return {
            (doc.document_id, query_id): failure
            for doc in self.documents.values()
            for query_id, failure in doc.errors.items()
        }
