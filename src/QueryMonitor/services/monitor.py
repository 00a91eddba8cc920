"""Monitor: registry of stored queries and the document matching pipeline.

Registration: query text -> parser -> query tree -> QueryAnalyzer ->
extraction result -> presearcher index.

Matching: document -> term extraction -> presearcher candidates -> matcher
-> `Matches`.

All writes are serialized. Each committed write publishes one immutable
state (stored queries plus presearcher snapshot) with a single reference
swap. `match` reads the state once and works on that version throughout,
so it never waits for a writer and never sees half of a batch.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Mapping, Sequence

from QueryMonitor.core.documents import DocumentTermExtractor
from QueryMonitor.core.errors import QueryParseError, UpdateFailure
from QueryMonitor.core.models import InputDocument, MonitorQuery, StoredQuery
from QueryMonitor.core.results import DocumentMatches, Matches, UpdateReport
from QueryMonitor.extraction.analyzer import QueryAnalyzer
from QueryMonitor.extraction.weights import TermWeightor, default_weightor
from QueryMonitor.matchers.base import MatcherFactory
from QueryMonitor.matchers.simple import SimpleMatcher
from QueryMonitor.presearcher.base import EMPTY_INDEX, Presearcher, PresearcherIndex, Registration
from QueryMonitor.presearcher.term import TermFilteredPresearcher
from QueryMonitor.utils.log import log

if TYPE_CHECKING:
    from QueryMonitor.parsing import QueryParser
    from QueryMonitor.storage.queries import QueryStore


@dataclass(frozen=True, slots=True)
class _MonitorState:
    queries: Mapping[str, StoredQuery]
    index: PresearcherIndex


class Monitor:
    """Match documents against a population of stored queries.

    Args:
        parser: Turns query text into query trees.
        presearcher: Candidate selection strategy; term filtering by default.
        weightor: Term weighting used by extraction.
        analyzer: Query term extractor.
        document_extractor: Turns documents into tokens. Must share the
            parser's analyzer and numeric field configuration.
        store: Optional persistence for registered queries.
    """

    def __init__(
        self,
        parser: QueryParser,
        presearcher: Presearcher | None = None,
        *,
        weightor: TermWeightor | None = None,
        analyzer: QueryAnalyzer | None = None,
        document_extractor: DocumentTermExtractor | None = None,
        store: QueryStore | None = None,
    ) -> None:
        self.parser = parser
        self.presearcher = presearcher or TermFilteredPresearcher()
        self.weightor = weightor or default_weightor()
        self.analyzer = analyzer or QueryAnalyzer()
        self.document_extractor = document_extractor or _extractor_for(parser)
        self.store = store
        self._write_lock = threading.Lock()
        self._state = _MonitorState(queries=MappingProxyType({}), index=EMPTY_INDEX)

    # -- registration ----------------------------------------------------

    def update(
        self,
        *queries: MonitorQuery | Iterable[MonitorQuery],
        persist: bool = True,
    ) -> UpdateReport:
        """Register or replace queries.

        Each query is parsed and analyzed independently; one that fails is
        reported and skipped while the rest of the batch is committed. All
        accepted queries become visible to `match` together. When the same
        id appears more than once, the last occurrence wins.

        Args:
            *queries: Queries, or iterables of queries.
            persist: Write accepted queries through to the store, if any.

        Returns:
            Report of committed ids and per-id failures.
        """
        batch = list(_flatten(queries))
        accepted: dict[str, StoredQuery] = {}
        registrations: dict[str, Registration] = {}
        failures: dict[str, UpdateFailure] = {}

        for query in batch:
            try:
                stored = self._prepare(query)
                registration = (stored.extraction, self._filter_metadata(query.metadata))
            except QueryParseError as error:
                log.warning("Query rejected: id=%s error=%s", query.id, error)
                failures[query.id] = UpdateFailure(kind="parse", error=error)
                accepted.pop(query.id, None)
                registrations.pop(query.id, None)
                continue
            except Exception as error:  # noqa: BLE001 - one query must not abort the batch
                log.warning("Term extraction failed: id=%s error=%s", query.id, error)
                failures[query.id] = UpdateFailure(kind="extraction", error=error)
                accepted.pop(query.id, None)
                registrations.pop(query.id, None)
                continue
            failures.pop(query.id, None)
            accepted[query.id] = stored
            registrations[query.id] = registration

        if accepted:
            with self._write_lock:
                if persist and self.store is not None:
                    self.store.save([stored.query for stored in accepted.values()])
                index = self.presearcher.commit(registrations)
                queries_map = dict(self._state.queries)
                queries_map.update(accepted)
                self._state = _MonitorState(queries=MappingProxyType(queries_map), index=index)

        log.info("Update complete: committed=%d failed=%d", len(accepted), len(failures))
        return UpdateReport(succeeded=tuple(accepted), failures=failures)

    def delete(self, *query_ids: str) -> None:
        """Remove queries by id; unknown ids are ignored."""
        if not query_ids:
            return
        with self._write_lock:
            if self.store is not None:
                self.store.delete(query_ids)
            index = self.presearcher.commit({}, removed=query_ids)
            dropped = set(query_ids)
            queries_map = {k: v for k, v in self._state.queries.items() if k not in dropped}
            self._state = _MonitorState(queries=MappingProxyType(queries_map), index=index)
        log.info("Deleted %d queries", len(query_ids))

    def clear(self) -> None:
        """Remove every query."""
        with self._write_lock:
            if self.store is not None:
                self.store.clear()
            index = self.presearcher.clear()
            self._state = _MonitorState(queries=MappingProxyType({}), index=index)
        log.info("Monitor cleared")

    def load(self) -> UpdateReport:
        """Register every query held by the store.

        Raises:
            RuntimeError: If the monitor has no store.
        """
        if self.store is None:
            raise RuntimeError("Monitor has no query store to load from")
        queries = self.store.load_all()
        log.info("Loading %d stored queries", len(queries))
        return self.update(queries, persist=False)

    def _prepare(self, query: MonitorQuery) -> StoredQuery:
        tree = self.parser.parse(query.query)
        extraction = self.analyzer.analyze(tree, self.weightor)
        log.debug(
            "Extracted id=%s any=%s terms=%s weight=%.3f",
            query.id,
            extraction.is_any,
            sorted((term.field, term.text) for term in extraction.terms),
            extraction.weight,
        )
        return StoredQuery(query=query, tree=tree, extraction=extraction)

    def _filter_metadata(self, metadata: Mapping[str, str]) -> Mapping[str, str]:
        """Analyze the presearcher filter value the way documents are analyzed."""
        filter_field = self.presearcher.filter_field
        if filter_field is None or filter_field not in metadata:
            return metadata
        tokens = self.document_extractor.value_tokens(filter_field, metadata[filter_field])
        return {**metadata, filter_field: " ".join(tokens)}

    # -- lookup ----------------------------------------------------------

    def get_query(self, query_id: str) -> MonitorQuery | None:
        stored = self._state.queries.get(query_id)
        return stored.query if stored is not None else None

    def query_ids(self) -> list[str]:
        return sorted(self._state.queries)

    @property
    def query_count(self) -> int:
        return len(self._state.queries)

    # -- matching --------------------------------------------------------

    def match(self, document: InputDocument, matcher_factory: MatcherFactory = SimpleMatcher) -> Matches:
        """Match one document against the stored queries.

        Args:
            document: Document to match.
            matcher_factory: Builds the matcher confirming candidates.

        Returns:
            Matches keyed by document id.
        """
        return self.match_batch([document], matcher_factory)

    def match_batch(
        self,
        documents: Sequence[InputDocument],
        matcher_factory: MatcherFactory = SimpleMatcher,
    ) -> Matches:
        """Match several documents against one consistent version of the queries.

        Only presearcher candidates are handed to the matcher. Matcher
        failures are recorded per query id in the result; a document that
        cannot be analyzed is recorded with its error and skipped.
        """
        state = self._state
        matcher = matcher_factory()
        presearch_time = 0.0
        match_time = 0.0
        queries_run = 0
        results: dict[str, DocumentMatches] = {}

        for document in documents:
            try:
                analyzed = self.document_extractor.analyze(document)
            except Exception as error:  # noqa: BLE001 - one document must not abort the batch
                log.warning("Document rejected: id=%s error=%s", document.id, error)
                results[document.id] = DocumentMatches(document_id=document.id, error=error)
                continue

            started = time.perf_counter()
            candidates = self.presearcher.select(analyzed.terms, index=state.index)
            presearch_time += time.perf_counter() - started

            started = time.perf_counter()
            outcome = matcher.confirm(candidates, analyzed, state.queries.get)
            match_time += time.perf_counter() - started

            queries_run += len(candidates)
            results[document.id] = DocumentMatches(
                document_id=document.id,
                matches=outcome.payloads,
                errors=outcome.errors,
                candidates=candidates,
            )
            log.debug(
                "Matched document=%s candidates=%d matches=%d errors=%d",
                document.id,
                len(candidates),
                len(outcome.payloads),
                len(outcome.errors),
            )

        return Matches(
            documents=results,
            queries_run=queries_run,
            presearch_time_ms=presearch_time * 1000,
            match_time_ms=match_time * 1000,
        )

    def close(self) -> None:
        """Release the store, if any."""
        close_func = getattr(self.store, "close", None)
        if callable(close_func):
            close_func()


def _flatten(items: Iterable[MonitorQuery | Iterable[MonitorQuery]]) -> Iterable[MonitorQuery]:
    for item in items:
        if isinstance(item, MonitorQuery):
            yield item
        else:
            yield from item


def _extractor_for(parser: QueryParser) -> DocumentTermExtractor:
    """Build a document extractor sharing the parser's analysis settings."""
    return DocumentTermExtractor(
        analyzer=getattr(parser, "analyzer", None),
        numeric_fields=getattr(parser, "numeric_fields", None),
    )
