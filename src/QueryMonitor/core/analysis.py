"""Token analysis shared by query parsing and document term extraction.

The parser and the document extractor must use the same analyzer and the
same numeric field configuration; a token produced on one side has to be
byte-identical to the token produced on the other, or presearching loses
matches.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Protocol

_WORD_RE = re.compile(r"\w+", re.UNICODE)

NUMERIC_TYPES = ("int", "float")


class Analyzer(Protocol):
    """Turns raw field text into tokens."""

    def tokenize(self, text: str) -> list[str]:
        """Split text into index tokens."""
        raise NotImplementedError

    def normalize(self, text: str) -> str:
        """Normalize a single token without splitting (used for wildcards and ranges)."""
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class WhitespaceAnalyzer:
    """Split on whitespace, optionally lowercasing."""

    lowercase: bool = False

    def tokenize(self, text: str) -> list[str]:
        return [self.normalize(token) for token in text.split()]

    def normalize(self, text: str) -> str:
        return text.lower() if self.lowercase else text


@dataclass(frozen=True, slots=True)
class StandardAnalyzer:
    """Split on word characters and lowercase."""

    def tokenize(self, text: str) -> list[str]:
        return [token.lower() for token in _WORD_RE.findall(text)]

    def normalize(self, text: str) -> str:
        return text.lower()


def create_analyzer(name: str, *, lowercase: bool = False) -> Analyzer:
    """Build an analyzer by its configuration name.

    Raises:
        ValueError: If the name is unknown.
    """
    if name == "whitespace":
        return WhitespaceAnalyzer(lowercase=lowercase)
    if name == "standard":
        return StandardAnalyzer()
    raise ValueError(f"Unsupported analyzer: {name}")


class NumericFieldConfig:
    """Declares which fields hold numbers and how to canonicalize them.

    Numbers are indexed as a single canonical token so that `age:1`,
    `age:01` and a document value of `1` all meet on `"1"`; float fields
    render through `repr(float(...))`, so `money:1` becomes `"1.0"`.
    """

    def __init__(self, fields: Mapping[str, str] | None = None) -> None:
        normalized: dict[str, str] = {}
        for name, kind in (fields or {}).items():
            kind_norm = str(kind).strip().lower()
            if kind_norm not in NUMERIC_TYPES:
                raise ValueError(f"Unsupported numeric type for field {name}: {kind}")
            normalized[name] = kind_norm
        self.fields = MappingProxyType(normalized)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self.fields

    def __bool__(self) -> bool:
        return bool(self.fields)

    def kind(self, field_name: str) -> str | None:
        return self.fields.get(field_name)

    def normalize(self, field_name: str, value: str | int | float) -> str:
        """Return the canonical token for a numeric field value.

        Raises:
            ValueError: If the value is not a valid number for the field type.
        """
        kind = self.fields[field_name]
        if isinstance(value, bool):
            raise ValueError(f"Field {field_name} expects a number, got a boolean")
        text = str(value).strip()
        if kind == "int":
            try:
                number = int(text)
            except ValueError:
                parsed = float(text)
                if not parsed.is_integer():
                    raise ValueError(f"Field {field_name} expects an integer: {value!r}") from None
                number = int(parsed)
            return str(number)
        parsed = float(text)
        if math.isnan(parsed):
            raise ValueError(f"Field {field_name} does not accept NaN")
        return repr(parsed)

    @staticmethod
    def numeric_value(token: str) -> float | None:
        """Numeric value of an indexed token, or None when it does not parse."""
        try:
            return float(token)
        except ValueError:
            return None
