"""Term weighting for extraction.

A `TermWeightor` assigns every extracted term a non-negative selectivity
weight: higher means rarer, so a better presearcher filter. Weights come
from one or more `WeightNorm` strategies combined by a configurable
aggregation (sum by default).

Norms must be pure functions of the term and of what was passed at
construction; corpus statistics are supplied up front, never looked up.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Iterable, Mapping, Sequence

from QueryMonitor.core.models import QueryTerm

CombineFn = Callable[[Sequence[float]], float]


class WeightNorm(ABC):
    """One weighting heuristic."""

    @abstractmethod
    def norm(self, term: QueryTerm) -> float:
        """Return this heuristic's weight for an EXACT term."""


class TokenLengthNorm(WeightNorm):
    """Favor longer tokens: `a - a * exp(-k * len(text))`.

    Longer tokens tend to be rarer. The curve saturates at `a`.
    """

    def __init__(self, a: float = 3.0, k: float = 0.3) -> None:
        if a < 0 or k < 0:
            raise ValueError("TokenLengthNorm parameters must be non-negative")
        self.a = a
        self.k = k

    def norm(self, term: QueryTerm) -> float:
        return self.a - self.a * math.exp(-self.k * len(term.text))


class FieldWeightNorm(WeightNorm):
    """Apply a fixed weight to terms in the named fields; 1.0 elsewhere."""

    def __init__(self, weight: float, fields: Iterable[str]) -> None:
        if weight < 0:
            raise ValueError("FieldWeightNorm weight must be non-negative")
        self.weight = weight
        self.fields = frozenset(fields)

    def norm(self, term: QueryTerm) -> float:
        return self.weight if term.field in self.fields else 1.0


class TermWeightNorm(WeightNorm):
    """Apply a fixed weight to the named tokens; 1.0 elsewhere."""

    def __init__(self, weight: float, terms: Iterable[str]) -> None:
        if weight < 0:
            raise ValueError("TermWeightNorm weight must be non-negative")
        self.weight = weight
        self.terms = frozenset(terms)

    def norm(self, term: QueryTerm) -> float:
        return self.weight if term.text in self.terms else 1.0


class TermFrequencyNorm(WeightNorm):
    """Penalize frequent tokens using supplied corpus counts.

    Weight is `1 / (1 + k * ln(1 + frequency))`; unknown tokens get 1.0.
    """

    def __init__(self, frequencies: Mapping[str, int], k: float = 1.0) -> None:
        if k < 0:
            raise ValueError("TermFrequencyNorm k must be non-negative")
        self.frequencies = dict(frequencies)
        self.k = k

    def norm(self, term: QueryTerm) -> float:
        frequency = max(0, self.frequencies.get(term.text, 0))
        return 1.0 / (1.0 + self.k * math.log1p(frequency))


def _product(values: Sequence[float]) -> float:
    return math.prod(values)


_COMBINERS: dict[str, CombineFn] = {
    "sum": math.fsum,
    "product": _product,
    "max": max,
}


def supported_combiners() -> tuple[str, ...]:
    return tuple(_COMBINERS)


class TermWeightor:
    """Combine weight norms into a single term weight.

    Args:
        *norms: Heuristics to apply. With none, every EXACT term weighs 1.0.
        combine: Aggregation over the norm values: ``sum``, ``product``,
            ``max`` or a callable taking the list of values.
    """

    def __init__(self, *norms: WeightNorm, combine: str | CombineFn = "sum") -> None:
        if isinstance(combine, str):
            if combine not in _COMBINERS:
                raise ValueError(f"Unsupported weight combiner: {combine}")
            self._combine = _COMBINERS[combine]
        else:
            self._combine = combine
        self.norms = tuple(norms)

    def __call__(self, term: QueryTerm) -> float:
        return self.weigh(term)

    def weigh(self, term: QueryTerm) -> float:
        """Return the weight of a single term; ANY terms weigh 0.0."""
        if term.is_any:
            return 0.0
        if not self.norms:
            return 1.0
        value = self._combine([norm.norm(term) for norm in self.norms])
        if math.isnan(value):
            return 0.0
        return max(0.0, float(value))

    def weigh_terms(self, terms: Iterable[QueryTerm]) -> float:
        """Aggregate weight of an alternative set: its weakest member.

        A document satisfies the set through any one member, so the set is
        only as selective as its least selective term.
        """
        weights = [self.weigh(term) for term in terms]
        return min(weights) if weights else 0.0


def default_weightor() -> TermWeightor:
    """Weightor used when none is configured."""
    return TermWeightor(TokenLengthNorm())
