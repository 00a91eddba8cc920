"""Console text output renderers.

Renders match results and extraction results into human-friendly text.
Provides ConsoleOutputWriter implementation for command output.
"""

from __future__ import annotations

from QueryMonitor.core.results import Matches
from QueryMonitor.extraction.analyzer import ExtractionResult
from QueryMonitor.renderers.base import OutputWriter
from QueryMonitor.utils.log import log


def render_text(matches: Matches) -> str:
    """Render match results into a text block.

    Args:
        matches: Results of one match run.

    Returns:
        A formatted string ready to be printed.
    """
    lines: list[str] = []
    for doc in matches:
        if doc.error is not None:
            lines.append(f"Document {doc.document_id}: failed: {doc.error}")
            continue
        lines.append(f"Document {doc.document_id}: {len(doc)} matches ({len(doc.candidates)} candidates)")
        for query_id in sorted(doc.matches):
            lines.append(f"   + {query_id}")
        for query_id in sorted(doc.errors):
            lines.append(f"   ! {query_id}: {doc.errors[query_id].error}")
    lines.append(
        f"Queries run: {matches.queries_run}  "
        f"Presearch: {matches.presearch_time_ms:.2f} ms  Match: {matches.match_time_ms:.2f} ms"
    )
    return "\n".join(lines) + "\n"


def render_extraction_text(extraction: ExtractionResult) -> str:
    """Render an extraction result, one term per line."""
    if extraction.is_any:
        return "ANY (always a candidate)\n"
    lines = [f"weight={extraction.weight:.4f}"]
    lines.extend(f"   {term.field}:{term.text}" for term in sorted(extraction.terms, key=lambda t: (t.field, t.text)))
    return "\n".join(lines) + "\n"


class ConsoleOutputWriter(OutputWriter):
    """Write results to console via logging."""

    def write_matches(self, matches: Matches) -> None:
        for line in render_text(matches).splitlines():
            log.info(line)

    def finalize(self, action: str) -> None:
        """No-op for console output."""
