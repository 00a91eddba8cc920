"""Presearchers: cheap candidate selection ahead of exact matching."""

from __future__ import annotations

from QueryMonitor.presearcher.base import EMPTY_INDEX, IndexEntry, Presearcher, PresearcherIndex
from QueryMonitor.presearcher.match_all import MatchAllPresearcher
from QueryMonitor.presearcher.registry import build_presearcher, supported_presearcher_names
from QueryMonitor.presearcher.term import FieldTermFilteredPresearcher, TermFilteredPresearcher

__all__ = [
    "EMPTY_INDEX",
    "IndexEntry",
    "Presearcher",
    "PresearcherIndex",
    "TermFilteredPresearcher",
    "FieldTermFilteredPresearcher",
    "MatchAllPresearcher",
    "build_presearcher",
    "supported_presearcher_names",
]
