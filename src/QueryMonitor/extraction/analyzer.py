"""Query term extraction.

Walks a query tree and derives a sound set of terms, at least one of which
every matching document must contain. All rules live in `QueryAnalyzer.analyze`:

- term leaf: the term itself
- match-all, wildcard, range, empty group: ANY
- phrase: the heaviest of its tokens (every token is required)
- disjunction (SHOULD clauses, no MUST): union of the children; ANY if any
  child is ANY, including purely negative children
- conjunction (at least one MUST): the heaviest non-ANY MUST child; SHOULD
  and MUST_NOT clauses are ignored; ANY if every MUST child is ANY
- purely negative group: ANY

Ties between equally weighted alternatives go to the first one encountered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from QueryMonitor.core.errors import QueryExtractionError
from QueryMonitor.core.models import ANY_TERM, QueryTerm, TermType
from QueryMonitor.core.query import (
    BooleanNode,
    MatchAllNode,
    Occur,
    PhraseNode,
    QueryNode,
    RangeNode,
    TermNode,
    WildcardNode,
)
from QueryMonitor.extraction.weights import TermWeightor, default_weightor
from QueryMonitor.utils.log import log


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Terms a matching document must contain at least one of.

    Attributes:
        terms: Alternative EXACT terms. Empty means ANY: no term can be
            soundly required.
        weight: Selectivity of the alternative set (0.0 for ANY).
    """

    terms: frozenset[QueryTerm] = frozenset()
    weight: float = 0.0

    @property
    def is_any(self) -> bool:
        return not self.terms

    def query_terms(self) -> frozenset[QueryTerm]:
        """Terms to index; the ANY sentinel term when nothing can be required."""
        return frozenset({ANY_TERM}) if self.is_any else self.terms


ANY = ExtractionResult()


class QueryAnalyzer:
    """Derive presearcher terms from query trees."""

    def analyze(self, node: QueryNode, weightor: TermWeightor | None = None) -> ExtractionResult:
        """Extract the weighted alternative set for a query tree.

        Args:
            node: Root of the query tree.
            weightor: Weighting used to pick between alternatives.

        Returns:
            The extraction result; `ANY` if no term requirement can be derived.

        Raises:
            QueryExtractionError: If the tree contains an unknown node kind.
        """
        return self._analyze(node, weightor or default_weightor())

    def collect_terms(self, node: QueryNode, weightor: TermWeightor | None = None) -> frozenset[QueryTerm]:
        """Return the terms to index for a query tree."""
        return self.analyze(node, weightor).query_terms()

    def _analyze(self, node: QueryNode, weightor: TermWeightor) -> ExtractionResult:
        if isinstance(node, TermNode):
            return _single(QueryTerm(node.field, node.text, TermType.EXACT), weightor)
        if isinstance(node, PhraseNode):
            return self._conjunction(
                (_single(QueryTerm(node.field, text, TermType.EXACT), weightor) for text in node.terms)
            )
        if isinstance(node, (MatchAllNode, WildcardNode, RangeNode)):
            return ANY
        if isinstance(node, BooleanNode):
            return self._boolean(node, weightor)
        raise QueryExtractionError(f"Cannot extract terms from {type(node).__name__}")

    def _boolean(self, node: BooleanNode, weightor: TermWeightor) -> ExtractionResult:
        required = node.by_occur(Occur.MUST)
        if required:
            return self._conjunction(self._analyze(child, weightor) for child in required)
        optional = node.by_occur(Occur.SHOULD)
        if optional:
            return self._disjunction([self._analyze(child, weightor) for child in optional], weightor)
        # Purely negative or empty: nothing positive to require.
        return ANY

    @staticmethod
    def _conjunction(results: Iterable[ExtractionResult]) -> ExtractionResult:
        best: ExtractionResult | None = None
        for result in results:
            if result.is_any:
                continue
            if best is None or result.weight > best.weight:
                best = result
        return ANY if best is None else best

    @staticmethod
    def _disjunction(results: list[ExtractionResult], weightor: TermWeightor) -> ExtractionResult:
        terms: set[QueryTerm] = set()
        for result in results:
            if result.is_any:
                log.debug("Disjunction degraded to ANY by an indeterminate branch")
                return ANY
            terms.update(result.terms)
        return ExtractionResult(terms=frozenset(terms), weight=weightor.weigh_terms(terms))


def _single(term: QueryTerm, weightor: TermWeightor) -> ExtractionResult:
    return ExtractionResult(terms=frozenset({term}), weight=weightor.weigh(term))
