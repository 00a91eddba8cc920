"""Exact evaluation of query trees against analyzed documents."""

from __future__ import annotations

from fnmatch import fnmatchcase

from QueryMonitor.core.analysis import NumericFieldConfig
from QueryMonitor.core.errors import QueryExtractionError
from QueryMonitor.core.models import AnalyzedDocument
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


def evaluate(node: QueryNode, document: AnalyzedDocument) -> bool:
    """Return True if the document satisfies the query tree.

    Boolean semantics:
    - a matching MUST_NOT clause rejects the document
    - with MUST clauses, all of them must match (SHOULD clauses are optional)
    - without MUST clauses, at least one SHOULD clause must match
    - a purely negative group matches whatever it does not prohibit
    - an empty group matches nothing
    """
    if isinstance(node, TermNode):
        return node.text in document.field_tokens(node.field)
    if isinstance(node, PhraseNode):
        return _contains_sequence(document.field_tokens(node.field), node.terms)
    if isinstance(node, WildcardNode):
        return any(fnmatchcase(token, node.pattern) for token in document.field_tokens(node.field))
    if isinstance(node, RangeNode):
        return any(_in_range(token, node) for token in document.field_tokens(node.field))
    if isinstance(node, MatchAllNode):
        return True
    if isinstance(node, BooleanNode):
        return _evaluate_boolean(node, document)
    raise QueryExtractionError(f"Cannot evaluate {type(node).__name__}")


def _evaluate_boolean(node: BooleanNode, document: AnalyzedDocument) -> bool:
    if not node.clauses:
        return False
    if any(evaluate(child, document) for child in node.by_occur(Occur.MUST_NOT)):
        return False
    required = node.by_occur(Occur.MUST)
    if required:
        return all(evaluate(child, document) for child in required)
    optional = node.by_occur(Occur.SHOULD)
    if optional:
        return any(evaluate(child, document) for child in optional)
    return True


def _contains_sequence(tokens: tuple[str, ...], sequence: tuple[str, ...]) -> bool:
    if not sequence:
        return False
    width = len(sequence)
    return any(tokens[start:start + width] == sequence for start in range(len(tokens) - width + 1))


def _in_range(token: str, node: RangeNode) -> bool:
    value: float | str | None = token
    lower: float | str | None = node.lower
    upper: float | str | None = node.upper
    if node.numeric:
        value = NumericFieldConfig.numeric_value(token)
        if value is None:
            return False
        lower = None if node.lower is None else NumericFieldConfig.numeric_value(node.lower)
        upper = None if node.upper is None else NumericFieldConfig.numeric_value(node.upper)

    if lower is not None:
        if value < lower or (value == lower and not node.include_lower):
            return False
    if upper is not None:
        if value > upper or (value == upper and not node.include_upper):
            return False
    return True
