"""Presearcher registry and builders."""

from __future__ import annotations

from collections.abc import Callable

from QueryMonitor.presearcher.base import Presearcher
from QueryMonitor.presearcher.match_all import MatchAllPresearcher
from QueryMonitor.presearcher.term import FieldTermFilteredPresearcher, TermFilteredPresearcher

PresearcherBuilder = Callable[..., Presearcher]


def build_presearcher(name: str, *, filter_field: str | None = None) -> Presearcher:
    """Build a presearcher from its registered name.

    Args:
        name: Presearcher identifier from ``presearcher.type``.
        filter_field: Optional metadata filter field.

    Returns:
        Presearcher: New, empty presearcher.

    Raises:
        ValueError: If ``name`` is not registered.
    """
    builder = _presearcher_builders().get(name)
    if builder is None:
        raise ValueError(f"Unsupported presearcher: {name}")
    return builder(filter_field=filter_field)


def supported_presearcher_names() -> tuple[str, ...]:
    """Return all presearcher names, in registry order."""
    return tuple(_presearcher_builders().keys())


def _presearcher_builders() -> dict[str, PresearcherBuilder]:
    return {
        "term": TermFilteredPresearcher,
        "field_term": FieldTermFilteredPresearcher,
        "match_all": MatchAllPresearcher,
    }
