"""Command implementations for QueryMonitor CLI.

Encapsulates what each command does, separated from CLI parameter handling
and resource management.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from QueryMonitor.config import AppConfig
from QueryMonitor.core.models import MonitorQuery
from QueryMonitor.matchers import create_matcher_factory
from QueryMonitor.renderers import OutputWriter, load_documents_file, render_extraction_text
from QueryMonitor.services.monitor import Monitor
from QueryMonitor.utils.log import log


@dataclass(slots=True)
class MonitorCommands:
    """Business logic of the CLI commands.

    Every command works on a monitor holding the configured start-up queries
    plus, when storage is enabled, the persisted ones.
    """

    config: AppConfig
    monitor: Monitor

    def bootstrap(self) -> None:
        """Register configured queries, then load stored ones over them."""
        if self.config.queries:
            report = self.monitor.update(self.config.queries, persist=False)
            report.raise_for_errors()
        if self.monitor.store is not None:
            self.monitor.load().raise_for_errors()
        log.debug("Monitor ready with %d queries", self.monitor.query_count)

    def analyze(self, query_text: str) -> None:
        """Print the terms extracted from a query."""
        tree = self.monitor.parser.parse(query_text)
        extraction = self.monitor.analyzer.analyze(tree, self.monitor.weightor)
        log.info("query=%s", query_text)
        for line in render_extraction_text(extraction).splitlines():
            log.info(line)

    def match(self, documents_path: Path, output_writer: OutputWriter) -> None:
        """Match the documents of a JSON file and write the results."""
        documents = load_documents_file(documents_path)
        log.info("Loaded %d documents from %s", len(documents), documents_path)
        matches = self.monitor.match_batch(documents, create_matcher_factory(self.config.matcher))
        output_writer.write_matches(matches)

    def register(self, query_id: str, query_text: str, metadata: Mapping[str, str]) -> None:
        """Register and persist one query.

        Raises:
            UpdateError: If the query cannot be parsed or analyzed.
        """
        self._require_store("register")
        self.monitor.update(MonitorQuery(id=query_id, query=query_text, metadata=metadata)).raise_for_errors()
        log.info("Registered %s", query_id)

    def delete(self, query_ids: Sequence[str]) -> None:
        self._require_store("delete")
        self.monitor.delete(*query_ids)

    def list_queries(self) -> None:
        ids = self.monitor.query_ids()
        log.info("%d queries", len(ids))
        for query_id in ids:
            query = self.monitor.get_query(query_id)
            meta = ", ".join(f"{k}={v}" for k, v in sorted(query.metadata.items()))
            log.info("%s: %s%s", query_id, query.query, f"  [{meta}]" if meta else "")

    def _require_store(self, action: str) -> None:
        if self.monitor.store is None:
            raise RuntimeError(f"{action} requires storage.enabled=true")
