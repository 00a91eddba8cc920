"""Term-based presearchers."""

from __future__ import annotations

from typing import Hashable, Iterable

from QueryMonitor.extraction.analyzer import ExtractionResult
from QueryMonitor.presearcher.base import Presearcher


class TermFilteredPresearcher(Presearcher):
    """Index queries by token text alone.

    A document is a candidate for a query when it contains any of the
    query's extracted tokens in any field.
    """

    name = "term"

    def _term_keys(self, extraction: ExtractionResult) -> Iterable[Hashable]:
        return {term.text for term in extraction.terms}

    def _document_keys(self, document_terms: frozenset[tuple[str, str]]) -> Iterable[Hashable]:
        return {text for _, text in document_terms}


class FieldTermFilteredPresearcher(Presearcher):
    """Index queries by `(field, token)`.

    Stricter than `TermFilteredPresearcher`: a token only counts when it
    appears in the field the query names, which keeps generic tokens shared
    across unrelated fields from producing candidates.
    """

    name = "field_term"

    def _term_keys(self, extraction: ExtractionResult) -> Iterable[Hashable]:
        return {(term.field, term.text) for term in extraction.terms}

    def _document_keys(self, document_terms: frozenset[tuple[str, str]]) -> Iterable[Hashable]:
        return document_terms
