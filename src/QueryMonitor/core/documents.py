"""Document term extraction.

Turns an `InputDocument` into per-field token streams using the same
analyzer and numeric configuration as the query parser.
"""

from __future__ import annotations

from typing import Mapping

from QueryMonitor.core.analysis import Analyzer, NumericFieldConfig, WhitespaceAnalyzer
from QueryMonitor.core.models import AnalyzedDocument, FieldValue, InputDocument


class DocumentTermExtractor:
    """Analyze input documents into tokens.

    Args:
        analyzer: Analyzer for textual values.
        numeric_fields: Fields whose values are canonicalized as numbers.
    """

    def __init__(
        self,
        analyzer: Analyzer | None = None,
        numeric_fields: NumericFieldConfig | Mapping[str, str] | None = None,
    ) -> None:
        self.analyzer = analyzer or WhitespaceAnalyzer()
        if isinstance(numeric_fields, NumericFieldConfig):
            self.numeric_fields = numeric_fields
        else:
            self.numeric_fields = NumericFieldConfig(numeric_fields)

    def analyze(self, document: InputDocument) -> AnalyzedDocument:
        """Analyze all fields of a document.

        Raises:
            ValueError: If a numeric field holds a value that is not a number.
        """
        tokens: dict[str, tuple[str, ...]] = {}
        for name, raw in document.fields.items():
            values = raw if isinstance(raw, (list, tuple)) else (raw,)
            field_tokens: list[str] = []
            for value in values:
                field_tokens.extend(self.value_tokens(name, value))
            tokens[name] = tuple(field_tokens)
        return AnalyzedDocument(id=document.id, tokens=tokens)

    def extract_terms(self, document: InputDocument) -> frozenset[tuple[str, str]]:
        """Return the distinct `(field, text)` pairs of a document."""
        return self.analyze(document).terms

    def value_tokens(self, name: str, value: FieldValue) -> list[str]:
        """Tokens of one raw value as it would be indexed in field `name`."""
        if value is None:
            return []
        if name in self.numeric_fields:
            return [self.numeric_fields.normalize(name, value)]
        return self.analyzer.tokenize(str(value))
