"""Storage layer for QueryMonitor.

Provides database management and persistence of registered queries.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from QueryMonitor.storage.db import DatabaseManager
from QueryMonitor.storage.migration import run_migrations
from QueryMonitor.storage.queries import QueryStore, SqliteQueryStore
from QueryMonitor.utils.log import log

if TYPE_CHECKING:
    from QueryMonitor.config import AppConfig


def create_storage(config: AppConfig) -> tuple[DatabaseManager | None, SqliteQueryStore | None]:
    """Create database manager and query store.

    Args:
        config: Application configuration containing storage settings.

    Returns:
        Tuple of (db_manager, query_store); both None if storage is disabled.
    """
    if not config.storage.enabled:
        return None, None

    db_path = Path(config.storage.db_path)
    db_manager = DatabaseManager(db_path)
    log.info("Query storage enabled: %s", db_path)
    return db_manager, SqliteQueryStore(db_manager)


__all__ = [
    "DatabaseManager",
    "QueryStore",
    "SqliteQueryStore",
    "run_migrations",
    "create_storage",
]
