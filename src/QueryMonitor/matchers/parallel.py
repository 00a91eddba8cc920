"""Thread-pool fan-out of candidate matching."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Iterable

from QueryMonitor.core.errors import MatchFailure
from QueryMonitor.core.models import AnalyzedDocument, StoredQuery
from QueryMonitor.matchers.base import CandidateMatcher, MatcherFactory, MatchOutcome, QueryLookup
from QueryMonitor.utils.log import log


class ParallelMatcher(CandidateMatcher):
    """Split candidates into slices and confirm them concurrently.

    Each slice gets its own matcher from `matcher_factory`, so the wrapped
    matcher does not need to be thread-safe.

    Args:
        matcher_factory: Builds the matcher for one slice.
        max_workers: Thread pool size, and the number of slices.
    """

    def __init__(self, matcher_factory: MatcherFactory, max_workers: int = 4) -> None:
        if max_workers <= 0:
            raise ValueError("max_workers must be positive")
        self.matcher_factory = matcher_factory
        self.max_workers = max_workers

    @classmethod
    def factory(cls, matcher_factory: MatcherFactory, max_workers: int = 4) -> MatcherFactory:
        """Return a matcher factory producing parallel matchers."""
        return lambda: cls(matcher_factory, max_workers=max_workers)

    def confirm(
        self,
        candidate_ids: Iterable[str],
        document: AnalyzedDocument,
        lookup: QueryLookup,
    ) -> MatchOutcome:
        ids = sorted(candidate_ids)
        outcome = MatchOutcome()
        if not ids:
            return outcome
        slices = [ids[start::self.max_workers] for start in range(min(self.max_workers, len(ids)))]

        with ThreadPoolExecutor(max_workers=len(slices)) as executor:
            future_to_slice = {
                executor.submit(self._confirm_slice, chunk, document, lookup): chunk
                for chunk in slices
            }
            for future in as_completed(future_to_slice):
                chunk = future_to_slice[future]
                try:
                    outcome.merge(future.result())
                except Exception as error:  # noqa: BLE001 - one slice must not abort the others
                    log.warning("Matcher slice failed: size=%d error=%s", len(chunk), error)
                    for query_id in chunk:
                        outcome.errors[query_id] = MatchFailure(query_id, error)

        log.debug(
            "Parallel match complete: document=%s candidates=%d matched=%d errors=%d",
            document.id,
            len(ids),
            len(outcome.payloads),
            len(outcome.errors),
        )
        return outcome

    def match_query(self, query: StoredQuery, document: AnalyzedDocument) -> Any | None:
        return self.matcher_factory().match_query(query, document)

    def _confirm_slice(self, chunk: list[str], document: AnalyzedDocument, lookup: QueryLookup) -> MatchOutcome:
        return self.matcher_factory().confirm(chunk, document, lookup)
