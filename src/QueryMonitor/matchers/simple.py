from __future__ import annotations

from QueryMonitor.core.models import AnalyzedDocument, StoredQuery
from QueryMonitor.matchers.base import CandidateMatcher
from QueryMonitor.matchers.evaluate import evaluate


class SimpleMatcher(CandidateMatcher):
    """Report a bare `True` payload for every matching query."""

    def match_query(self, query: StoredQuery, document: AnalyzedDocument) -> bool | None:
        return True if evaluate(query.tree, document) else None
