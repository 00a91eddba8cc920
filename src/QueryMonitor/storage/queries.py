"""Persistent query store.

Keeps the registration data (`MonitorQuery`) of every stored query so a
monitor can be restored after a restart. Query trees and extraction results
are never persisted; they are re-derived on load.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Iterable, Protocol, Sequence

from QueryMonitor.core.models import MonitorQuery
from QueryMonitor.utils.log import log

if TYPE_CHECKING:
    from QueryMonitor.storage.db import DatabaseManager


class QueryStore(Protocol):
    """Protocol for query persistence used by the monitor."""

    def save(self, queries: Sequence[MonitorQuery]) -> None:
        """Insert or replace queries."""
        raise NotImplementedError

    def delete(self, query_ids: Iterable[str]) -> None:
        """Remove queries by id."""
        raise NotImplementedError

    def clear(self) -> None:
        """Remove every query."""
        raise NotImplementedError

    def load_all(self) -> list[MonitorQuery]:
        """Return every persisted query."""
        raise NotImplementedError


class SqliteQueryStore:
    """SQLite-backed query store."""

    def __init__(self, db_manager: DatabaseManager) -> None:
        """Initialize query store.

        Args:
            db_manager: Shared database manager instance.
        """
        log.debug("Initializing SqliteQueryStore")
        self.conn = db_manager.get_connection()

    def save(self, queries: Sequence[MonitorQuery]) -> None:
        """Insert or replace queries in one transaction.

        Args:
            queries: Queries to persist; later entries win on duplicate ids.
        """
        if not queries:
            return
        with self.conn:
            self.conn.executemany(
                """
                INSERT INTO stored_queries (query_id, query, metadata)
                VALUES (?, ?, ?)
                ON CONFLICT(query_id) DO UPDATE SET
                    query = excluded.query,
                    metadata = excluded.metadata,
                    updated_at = CAST(strftime('%s','now') AS INTEGER)
                """,
                [
                    (query.id, query.query, json.dumps(dict(query.metadata), ensure_ascii=False, sort_keys=True))
                    for query in queries
                ],
            )
        log.debug("Persisted %d queries", len(queries))

    def delete(self, query_ids: Iterable[str]) -> None:
        ids = list(query_ids)
        if not ids:
            return
        with self.conn:
            self.conn.executemany("DELETE FROM stored_queries WHERE query_id = ?", [(query_id,) for query_id in ids])
        log.debug("Deleted %d persisted queries", len(ids))

    def clear(self) -> None:
        with self.conn:
            self.conn.execute("DELETE FROM stored_queries")

    def load_all(self) -> list[MonitorQuery]:
        """Return every persisted query, ordered by id.

        Raises:
            ValueError: If a stored metadata column is not a JSON object.
        """
        cursor = self.conn.execute("SELECT query_id, query, metadata FROM stored_queries ORDER BY query_id")
        queries: list[MonitorQuery] = []
        for query_id, query_text, metadata_raw in cursor:
            metadata = json.loads(metadata_raw or "{}")
            if not isinstance(metadata, dict):
                raise ValueError(f"Stored metadata for query {query_id} must be a JSON object")
            queries.append(
                MonitorQuery(
                    id=query_id,
                    query=query_text,
                    metadata={str(k): str(v) for k, v in metadata.items()},
                )
            )
        return queries
