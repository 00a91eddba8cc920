"""Query tree passed from the parser to extraction and matching.

The tree is a closed set of node kinds. Every consumer (term extraction,
exact evaluation) dispatches over exactly these classes:

- `TermNode`: a literal token in a field
- `PhraseNode`: tokens that must appear consecutively in a field
- `WildcardNode`: a `*` / `?` glob over a field's tokens
- `RangeNode`: an open or closed range over a field's tokens
- `MatchAllNode`: matches every document
- `BooleanNode`: clauses combined with MUST / SHOULD / MUST_NOT
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class Occur(str, Enum):
    """How a clause participates in its enclosing `BooleanNode`."""

    MUST = "MUST"
    SHOULD = "SHOULD"
    MUST_NOT = "MUST_NOT"


@dataclass(frozen=True, slots=True)
class TermNode:
    field: str
    text: str


@dataclass(frozen=True, slots=True)
class PhraseNode:
    field: str
    terms: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class WildcardNode:
    field: str
    pattern: str


@dataclass(frozen=True, slots=True)
class RangeNode:
    """Range over a field; `None` bounds are open ends.

    Bounds compare as numbers when `numeric` is set (declared numeric
    fields), and as text otherwise.
    """

    field: str
    lower: str | None
    upper: str | None
    include_lower: bool = True
    include_upper: bool = True
    numeric: bool = False


@dataclass(frozen=True, slots=True)
class MatchAllNode:
    pass


@dataclass(frozen=True, slots=True)
class BooleanClause:
    occur: Occur
    query: QueryNode


@dataclass(frozen=True, slots=True)
class BooleanNode:
    clauses: tuple[BooleanClause, ...] = ()

    def by_occur(self, occur: Occur) -> list[QueryNode]:
        """Return the sub-queries of all clauses with the given occur."""
        return [clause.query for clause in self.clauses if clause.occur is occur]


QueryNode = Union[TermNode, PhraseNode, WildcardNode, RangeNode, MatchAllNode, BooleanNode]


def boolean(*clauses: tuple[Occur, QueryNode] | BooleanClause) -> BooleanNode:
    """Build a `BooleanNode` from `(occur, query)` pairs or clauses."""
    built: list[BooleanClause] = []
    for clause in clauses:
        if isinstance(clause, BooleanClause):
            built.append(clause)
        else:
            occur, query = clause
            built.append(BooleanClause(occur=occur, query=query))
    return BooleanNode(clauses=tuple(built))
