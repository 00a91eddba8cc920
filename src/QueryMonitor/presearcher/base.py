"""Presearcher base: copy-on-write candidate index.

A `Presearcher` keeps the derived filter entries of all stored queries in an
immutable `PresearcherIndex` snapshot. Every write (`commit`, and the
single-item `index` / `remove` built on it) builds a new snapshot from the
previous one and publishes it with a single reference swap. Readers take one
snapshot at the start of `select` and never block on, or observe, an
in-flight write.

A commit copies the entry and posting maps once, so it costs O(N) in the
number of stored queries however many ids it carries. Batch registrations
through `commit` rather than calling `index` once per id.

Subclasses only decide how terms are keyed: `_term_keys` maps an extraction
result to posting keys, and `_document_keys` maps a document's terms to the
keys to look up. Keys from both sides must agree for soundness.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Hashable, Iterable, Mapping

from QueryMonitor.extraction.analyzer import ExtractionResult
from QueryMonitor.utils.log import log

DocumentTerms = Iterable[tuple[str, str]]


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """Filter entry of one stored query.

    Attributes:
        extraction: The query's extraction result.
        keys: Posting keys the id is listed under; empty for always-candidates.
        filter_tokens: Tokens of the metadata filter value. The query is only
            a candidate for documents holding all of them in the filter
            field; None when the query carries no filter value.
    """

    extraction: ExtractionResult
    keys: frozenset[Hashable]
    filter_tokens: frozenset[str] | None = None


@dataclass(frozen=True, slots=True)
class PresearcherIndex:
    """Immutable snapshot of the presearcher state.

    Attributes:
        version: Increases by one with every published snapshot.
        entries: Query id to filter entry.
        postings: Posting key to the ids listed under it.
        any_ids: Ids that are candidates for every document.
    """

    version: int = 0
    entries: Mapping[str, IndexEntry] = field(default_factory=lambda: MappingProxyType({}))
    postings: Mapping[Hashable, frozenset[str]] = field(default_factory=lambda: MappingProxyType({}))
    any_ids: frozenset[str] = frozenset()

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, query_id: object) -> bool:
        return query_id in self.entries


EMPTY_INDEX = PresearcherIndex()

Registration = tuple[ExtractionResult, Mapping[str, str] | None]


class Presearcher(ABC):
    """Select candidate queries for a document from extracted terms.

    Args:
        filter_field: Optional metadata field. A query whose metadata holds a
            value for this field is only a candidate for documents that
            contain that value in the same field. The value is read as
            whitespace-separated tokens, already analyzed the way the
            document field is; `Monitor` takes care of that.
    """

    name = "base"

    def __init__(self, *, filter_field: str | None = None) -> None:
        self.filter_field = filter_field or None
        self._index = EMPTY_INDEX
        self._write_lock = threading.Lock()

    # -- writes ----------------------------------------------------------

    def index(
        self,
        query_id: str,
        extraction: ExtractionResult,
        metadata: Mapping[str, str] | None = None,
    ) -> PresearcherIndex:
        """Register or replace the filter entry for one query id."""
        return self.commit({query_id: (extraction, metadata)})

    def remove(self, query_id: str) -> PresearcherIndex:
        """Drop a query id from the index."""
        return self.commit({}, removed=(query_id,))

    def commit(
        self,
        indexed: Mapping[str, Registration],
        removed: Iterable[str] = (),
    ) -> PresearcherIndex:
        """Apply a batch of registrations and removals as one snapshot.

        Ids in `indexed` replace any previous entry. Removals of unknown ids
        are ignored. An id present in both is removed first, then indexed.

        Args:
            indexed: Query id to `(extraction, metadata)`.
            removed: Query ids to drop.

        Returns:
            The published snapshot.
        """
        removed = tuple(removed)
        with self._write_lock:
            snapshot = self._build(self._index, indexed, removed)
            self._index = snapshot
        log.debug(
            "Presearcher %s committed v%d: indexed=%d removed=%d total=%d",
            self.name,
            snapshot.version,
            len(indexed),
            len(removed),
            len(snapshot),
        )
        return snapshot

    def rebuild(self, registrations: Mapping[str, Registration]) -> PresearcherIndex:
        """Replace the whole index with entries built from scratch.

        Produces the same selections as committing the registrations one by
        one into an empty presearcher.
        """
        with self._write_lock:
            base = PresearcherIndex(version=self._index.version)
            snapshot = self._build(base, registrations, ())
            self._index = snapshot
        log.debug("Presearcher %s rebuilt v%d: total=%d", self.name, snapshot.version, len(snapshot))
        return snapshot

    def clear(self) -> PresearcherIndex:
        """Drop every entry."""
        return self.rebuild({})

    def _build(
        self,
        current: PresearcherIndex,
        indexed: Mapping[str, Registration],
        removed: tuple[str, ...],
    ) -> PresearcherIndex:
        entries = dict(current.entries)
        any_ids = set(current.any_ids)
        dropped: dict[Hashable, set[str]] = defaultdict(set)
        added: dict[Hashable, set[str]] = defaultdict(set)

        for query_id in (*removed, *indexed):
            old = entries.pop(query_id, None)
            if old is None:
                continue
            any_ids.discard(query_id)
            for key in old.keys:
                dropped[key].add(query_id)

        for query_id, (extraction, metadata) in indexed.items():
            entry = self._entry(extraction, metadata)
            entries[query_id] = entry
            if not entry.keys:
                any_ids.add(query_id)
            for key in entry.keys:
                added[key].add(query_id)

        postings = dict(current.postings)
        for key in dropped.keys() | added.keys():
            ids = (postings.get(key, frozenset()) - dropped.get(key, set())) | added.get(key, set())
            if ids:
                postings[key] = frozenset(ids)
            else:
                postings.pop(key, None)

        return PresearcherIndex(
            version=current.version + 1,
            entries=MappingProxyType(entries),
            postings=MappingProxyType(postings),
            any_ids=frozenset(any_ids),
        )

    # -- reads -----------------------------------------------------------

    def snapshot(self) -> PresearcherIndex:
        """Return the currently published snapshot."""
        return self._index

    def select(
        self,
        document_terms: DocumentTerms,
        index: PresearcherIndex | None = None,
    ) -> frozenset[str]:
        """Return the candidate query ids for a document.

        Args:
            document_terms: The document's `(field, text)` pairs.
            index: Snapshot to read; the current one when omitted.

        Returns:
            Every always-candidate id plus every id sharing a key with the
            document, restricted by the metadata filter when configured.
        """
        snapshot = index if index is not None else self._index
        terms = frozenset(document_terms)
        candidates = set(snapshot.any_ids)
        for key in self._document_keys(terms):
            posted = snapshot.postings.get(key)
            if posted:
                candidates.update(posted)
        if self.filter_field is not None:
            allowed = {text for name, text in terms if name == self.filter_field}
            candidates = {
                query_id
                for query_id in candidates
                if snapshot.entries[query_id].filter_tokens is None
                or snapshot.entries[query_id].filter_tokens <= allowed
            }
        return frozenset(candidates)

    # -- keying ----------------------------------------------------------

    def _entry(self, extraction: ExtractionResult, metadata: Mapping[str, str] | None) -> IndexEntry:
        filter_tokens = None
        if self.filter_field is not None and metadata and self.filter_field in metadata:
            filter_tokens = frozenset(metadata[self.filter_field].split())
        keys = frozenset() if extraction.is_any else frozenset(self._term_keys(extraction))
        return IndexEntry(extraction=extraction, keys=keys, filter_tokens=filter_tokens)

    @abstractmethod
    def _term_keys(self, extraction: ExtractionResult) -> Iterable[Hashable]:
        """Posting keys for a non-ANY extraction result.

        Returning no keys makes the query an always-candidate.
        """

    @abstractmethod
    def _document_keys(self, document_terms: frozenset[tuple[str, str]]) -> Iterable[Hashable]:
        """Posting keys to look up for a document."""

