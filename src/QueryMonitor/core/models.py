from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping, Sequence, Union

from QueryMonitor.core.query import QueryNode

if TYPE_CHECKING:
    from QueryMonitor.extraction.analyzer import ExtractionResult

FieldValue = Union[str, int, float]


class TermType(str, Enum):
    """Kind of an extracted query term.

    - `EXACT`: a document must contain this token in this field
    - `ANY`: no specific token can be required; always a candidate
    """

    EXACT = "EXACT"
    ANY = "ANY"


@dataclass(frozen=True, slots=True)
class QueryTerm:
    """Atomic unit of term extraction.

    Equality and hashing cover all three attributes, so alternative sets
    deduplicate naturally.
    """

    field: str
    text: str
    type: TermType = TermType.EXACT

    @property
    def is_any(self) -> bool:
        return self.type is TermType.ANY


ANY_TERM = QueryTerm("__anytokenfield", "__ANYTOKEN__", TermType.ANY)


@dataclass(frozen=True, slots=True)
class MonitorQuery:
    """A query registration request.

    Attributes:
        id: Caller-assigned unique identifier. Registering the same id again
            replaces the previous query.
        query: Query text, handed to the configured parser.
        metadata: Opaque string metadata kept alongside the query.
    """

    id: str
    query: str
    metadata: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("MonitorQuery.id must not be empty")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))


@dataclass(frozen=True, slots=True)
class StoredQuery:
    """Canonical monitor entry: the registration plus everything derived from it."""

    query: MonitorQuery
    tree: QueryNode
    extraction: ExtractionResult

    @property
    def id(self) -> str:
        return self.query.id


@dataclass(frozen=True, slots=True)
class InputDocument:
    """A document to match against the stored queries.

    Attributes:
        id: Document identifier used to key match results.
        fields: Raw field values. A value may be a string, a number, or a
            sequence of those for multi-valued fields.
    """

    id: str
    fields: Mapping[str, FieldValue | Sequence[FieldValue]]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


@dataclass(frozen=True, slots=True)
class AnalyzedDocument:
    """A document reduced to its per-field token streams."""

    id: str
    tokens: Mapping[str, tuple[str, ...]]

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokens", MappingProxyType(dict(self.tokens)))

    def field_tokens(self, field_name: str) -> tuple[str, ...]:
        return self.tokens.get(field_name, ())

    @property
    def terms(self) -> frozenset[tuple[str, str]]:
        """Distinct `(field, text)` pairs, the input to presearcher selection."""
        return frozenset((name, token) for name, values in self.tokens.items() for token in values)
