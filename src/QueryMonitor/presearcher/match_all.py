"""Presearcher that disables filtering."""

from __future__ import annotations

from typing import Hashable, Iterable

from QueryMonitor.extraction.analyzer import ExtractionResult
from QueryMonitor.presearcher.base import Presearcher


class MatchAllPresearcher(Presearcher):
    """Every registered query is a candidate for every document.

    Useful as a baseline when checking other presearchers, and for small
    query sets where filtering costs more than it saves. The metadata
    filter field still applies.
    """

    name = "match_all"

    def _term_keys(self, extraction: ExtractionResult) -> Iterable[Hashable]:
        return ()

    def _document_keys(self, document_terms: frozenset[tuple[str, str]]) -> Iterable[Hashable]:
        return ()
