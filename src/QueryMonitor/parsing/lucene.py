"""Lucene classic query syntax parser.

Parses query strings such as::

    +title:python -(body:java body:kotlin) "exact phrase" age:[18 TO *]

into the `QueryMonitor.core.query` tree.

Rules
- Bare terms go to the default field; `field:(...)` sets the field for a group.
- `+` / `-` / `!` / `NOT` prefix a clause as MUST / MUST_NOT.
- `a AND b` marks both sides MUST, `a OR b` leaves them SHOULD; `&&` and
  `||` are accepted as aliases.
- `*:*` matches every document; unescaped `*` / `?` inside a term make it a
  wildcard.
- `[a TO b]` / `{a TO b}` are inclusive / exclusive ranges, `*` leaves an
  end open.
- `^boost` is accepted and ignored; proximity and fuzzy `~` are rejected.
- A single clause without a modifier is returned as-is; anything else is
  wrapped in a `BooleanNode`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from QueryMonitor.core.analysis import Analyzer, NumericFieldConfig, WhitespaceAnalyzer
from QueryMonitor.core.errors import QueryParseError
from QueryMonitor.core.query import (
    BooleanClause,
    BooleanNode,
    MatchAllNode,
    Occur,
    PhraseNode,
    QueryNode,
    RangeNode,
    TermNode,
    WildcardNode,
)

_SPECIAL_CHARS = frozenset('()":^[]{}~')
_WORD_BOUNDARY = frozenset(' \t\r\n()"')


@dataclass(frozen=True, slots=True)
class _RawTerm:
    text: str
    wildcard: bool
    start: int


class LuceneQueryParser:
    """Parse Lucene classic syntax into query trees.

    Args:
        default_field: Field used for terms without an explicit field.
        analyzer: Analyzer applied to term and phrase text. Must be the same
            analyzer used for documents.
        numeric_fields: Fields whose values are canonicalized as numbers.
    """

    def __init__(
        self,
        default_field: str = "text",
        analyzer: Analyzer | None = None,
        numeric_fields: NumericFieldConfig | Mapping[str, str] | None = None,
    ) -> None:
        if not default_field:
            raise ValueError("default_field must not be empty")
        self.default_field = default_field
        self.analyzer = analyzer or WhitespaceAnalyzer()
        if isinstance(numeric_fields, NumericFieldConfig):
            self.numeric_fields = numeric_fields
        else:
            self.numeric_fields = NumericFieldConfig(numeric_fields)

    def parse(self, text: str) -> QueryNode:
        """Parse query text.

        Args:
            text: Query string.

        Returns:
            Root node of the query tree.

        Raises:
            QueryParseError: If the text is empty or malformed.
        """
        if not text or not text.strip():
            raise QueryParseError("Empty query")
        return _ParseSession(self, text).parse()

    def term_node(self, field: str, text: str, *, position: int = 0) -> QueryNode:
        """Build the leaf for term or phrase text after analysis."""
        if field in self.numeric_fields:
            return TermNode(field=field, text=self._number(field, text, position))
        return _node_from_tokens(field, self.analyzer.tokenize(text))

    def bound(self, field: str, text: str, *, position: int = 0) -> str | None:
        if text == "*":
            return None
        if field in self.numeric_fields:
            return self._number(field, text, position)
        return self.analyzer.normalize(text)

    def _number(self, field: str, text: str, position: int) -> str:
        try:
            return self.numeric_fields.normalize(field, text)
        except ValueError as error:
            raise QueryParseError(f"Invalid number for field {field}: {text!r}", position=position) from error


def _node_from_tokens(field: str, tokens: list[str]) -> QueryNode:
    if not tokens:
        # Nothing survived analysis; an empty group matches no document.
        return BooleanNode()
    if len(tokens) == 1:
        return TermNode(field=field, text=tokens[0])
    return PhraseNode(field=field, terms=tuple(tokens))


class _ParseSession:
    """Single-use cursor over one query string."""

    def __init__(self, parser: LuceneQueryParser, text: str) -> None:
        self.parser = parser
        self.text = text
        self.pos = 0

    def parse(self) -> QueryNode:
        node = self._parse_query(self.parser.default_field, depth=0)
        self._skip_ws()
        if not self._at_end():
            raise QueryParseError("Unexpected ')'", position=self.pos)
        return node

    # -- grammar ---------------------------------------------------------

    def _parse_query(self, field: str, *, depth: int) -> QueryNode:
        clauses: list[BooleanClause] = []
        conjunction: str | None = None
        conjunction_pos = 0
        while True:
            self._skip_ws()
            if self._at_end():
                break
            if self._peek() == ")":
                if depth == 0:
                    raise QueryParseError("Unbalanced ')'", position=self.pos)
                break

            start = self.pos
            keyword = self._read_conjunction()
            if keyword is not None:
                if not clauses:
                    raise QueryParseError(f"Query cannot start with {keyword}", position=start)
                if conjunction is not None:
                    raise QueryParseError(f"Unexpected {keyword} after {conjunction}", position=start)
                conjunction = keyword
                conjunction_pos = start
                continue

            modifier = self._read_modifier()
            node = self._parse_clause(field)
            _add_clause(clauses, conjunction, modifier, node)
            conjunction = None

        if conjunction is not None:
            raise QueryParseError(f"Dangling {conjunction}", position=conjunction_pos)
        if not clauses:
            raise QueryParseError("Empty group", position=self.pos)
        if len(clauses) == 1 and clauses[0].occur is Occur.SHOULD:
            return clauses[0].query
        return BooleanNode(clauses=tuple(clauses))

    def _parse_clause(self, field: str) -> QueryNode:
        start = self.pos
        if self._at_end():
            raise QueryParseError("Expected a clause", position=start)
        ch = self._peek()
        if ch in " \t\r\n":
            raise QueryParseError("Modifier must be followed by a clause", position=start)

        if ch in "([{\"":
            node = self._parse_value(field)
        else:
            raw = self._read_term()
            if self._peek() == ":":
                self.pos += 1
                node = self._parse_fielded(raw)
            else:
                node = self._leaf(field, raw)
        self._skip_boost()
        return node

    def _parse_fielded(self, raw_field: _RawTerm) -> QueryNode:
        if raw_field.text == "*" and raw_field.wildcard:
            value = self._read_term()
            if value.text != "*":
                raise QueryParseError("Only *:* is supported for the any-field syntax", position=value.start)
            return MatchAllNode()
        if raw_field.wildcard:
            raise QueryParseError(f"Invalid field name: {raw_field.text}", position=raw_field.start)
        field = raw_field.text
        if self._at_end() or self._peek() in " \t\r\n":
            raise QueryParseError(f"Missing value for field {field}", position=self.pos)
        if self._peek() in "([{\"":
            return self._parse_value(field)
        return self._leaf(field, self._read_term())

    def _parse_value(self, field: str) -> QueryNode:
        ch = self._peek()
        if ch == "(":
            return self._parse_group(field)
        if ch == '"':
            start = self.pos
            text = self._read_quoted()
            if self._peek() == "~":
                raise QueryParseError("Phrase slop is not supported", position=self.pos)
            return self.parser.term_node(field, text, position=start)
        return self._parse_range(field)

    def _parse_group(self, field: str) -> QueryNode:
        start = self.pos
        self.pos += 1
        node = self._parse_query(field, depth=1)
        if self._at_end():
            raise QueryParseError("Missing ')'", position=start)
        self.pos += 1
        return node

    def _parse_range(self, field: str) -> QueryNode:
        start = self.pos
        include_lower = self._peek() == "["
        self.pos += 1
        self._skip_ws()
        lower = self._read_term()
        self._skip_ws()
        if not self.text.startswith("TO", self.pos):
            raise QueryParseError("Expected TO in range", position=self.pos)
        self.pos += 2
        self._skip_ws()
        upper = self._read_term()
        self._skip_ws()
        if self._at_end() or self._peek() not in "]}":
            raise QueryParseError("Unterminated range", position=start)
        include_upper = self._peek() == "]"
        self.pos += 1
        return RangeNode(
            field=field,
            lower=self.parser.bound(field, lower.text, position=lower.start),
            upper=self.parser.bound(field, upper.text, position=upper.start),
            include_lower=include_lower,
            include_upper=include_upper,
            numeric=field in self.parser.numeric_fields,
        )

    def _leaf(self, field: str, raw: _RawTerm) -> QueryNode:
        if self._peek() == "~":
            raise QueryParseError("Fuzzy queries are not supported", position=self.pos)
        if raw.wildcard:
            return WildcardNode(field=field, pattern=self.parser.analyzer.normalize(raw.text))
        return self.parser.term_node(field, raw.text, position=raw.start)

    # -- lexing ----------------------------------------------------------

    def _read_conjunction(self) -> str | None:
        for symbol, keyword in (("&&", "AND"), ("||", "OR")):
            if self.text.startswith(symbol, self.pos):
                self.pos += len(symbol)
                return keyword
        for keyword in ("AND", "OR"):
            if self._at_keyword(keyword):
                self.pos += len(keyword)
                return keyword
        return None

    def _read_modifier(self) -> Occur | None:
        ch = self._peek()
        if ch == "+":
            self.pos += 1
            return Occur.MUST
        if ch in "-!":
            self.pos += 1
            return Occur.MUST_NOT
        if self._at_keyword("NOT"):
            self.pos += 3
            self._skip_ws()
            return Occur.MUST_NOT
        return None

    def _read_term(self) -> _RawTerm:
        start = self.pos
        chars: list[str] = []
        wildcard = False
        while not self._at_end():
            ch = self.text[self.pos]
            if ch == "\\":
                if self.pos + 1 >= len(self.text):
                    raise QueryParseError("Dangling escape character", position=self.pos)
                chars.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            if ch.isspace() or ch in _SPECIAL_CHARS:
                break
            if ch in "*?":
                wildcard = True
            chars.append(ch)
            self.pos += 1
        if not chars:
            found = "end of query" if self._at_end() else repr(self.text[self.pos])
            raise QueryParseError(f"Expected a term, found {found}", position=start)
        return _RawTerm(text="".join(chars), wildcard=wildcard, start=start)

    def _read_quoted(self) -> str:
        start = self.pos
        self.pos += 1
        chars: list[str] = []
        while not self._at_end():
            ch = self.text[self.pos]
            if ch == "\\" and self.pos + 1 < len(self.text):
                chars.append(self.text[self.pos + 1])
                self.pos += 2
                continue
            if ch == '"':
                self.pos += 1
                return "".join(chars)
            chars.append(ch)
            self.pos += 1
        raise QueryParseError("Unterminated phrase", position=start)

    def _skip_boost(self) -> None:
        if self._peek() != "^":
            return
        self.pos += 1
        start = self.pos
        while not self._at_end() and (self.text[self.pos].isdigit() or self.text[self.pos] == "."):
            self.pos += 1
        if start == self.pos:
            raise QueryParseError("Boost must be a number", position=start)

    def _at_keyword(self, keyword: str) -> bool:
        if not self.text.startswith(keyword, self.pos):
            return False
        end = self.pos + len(keyword)
        return end >= len(self.text) or self.text[end] in _WORD_BOUNDARY

    def _skip_ws(self) -> None:
        while not self._at_end() and self.text[self.pos].isspace():
            self.pos += 1

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)


def _add_clause(
    clauses: list[BooleanClause],
    conjunction: str | None,
    modifier: Occur | None,
    node: QueryNode,
) -> None:
    """Append a clause following Lucene's classic AND/OR promotion rules."""
    if clauses and conjunction == "AND" and clauses[-1].occur is Occur.SHOULD:
        clauses[-1] = BooleanClause(occur=Occur.MUST, query=clauses[-1].query)

    if modifier is not None:
        occur = modifier
    elif conjunction == "AND":
        occur = Occur.MUST
    else:
        occur = Occur.SHOULD
    clauses.append(BooleanClause(occur=occur, query=node))
