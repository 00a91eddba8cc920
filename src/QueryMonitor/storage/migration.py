"""Schema migration mechanism for the query store's SQLite database.

Provides versioned, ordered migrations that are applied automatically at
DatabaseManager initialization time. Each migration runs in an explicit
transaction; failures roll back atomically, leaving the database in a safe
state.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from QueryMonitor.utils.log import log

_SCHEMA_VERSION_DDL = """
CREATE TABLE IF NOT EXISTS schema_version (
    id      INTEGER PRIMARY KEY CHECK (id = 1),
    version INTEGER NOT NULL
)
"""


@dataclass(frozen=True)
class Migration:
    """A single versioned schema migration.

    Attributes:
        version: Monotonically increasing integer, starting at 1.
        description: Human-readable summary of what this migration does.
        sql: One or more semicolon-separated DDL/DML statements to execute.
    """

    version: int
    description: str
    sql: str


# ---------------------------------------------------------------------------
# Migration list (append-only; never modify published entries)
# ---------------------------------------------------------------------------

MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="Initial schema: stored_queries",
        sql="""
            CREATE TABLE IF NOT EXISTS stored_queries (
              query_id TEXT PRIMARY KEY,
              query TEXT NOT NULL,
              metadata TEXT NOT NULL DEFAULT '{}',
              updated_at INTEGER NOT NULL DEFAULT (
                CAST(strftime('%s','now') AS INTEGER)
              )
            );

            CREATE INDEX IF NOT EXISTS idx_stored_queries_updated
              ON stored_queries(updated_at);
        """,
    ),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations to the database.

    Args:
        conn: Active SQLite connection.

    Raises:
        ValueError: If MIGRATIONS contains a version gap or does not start at 1.
        sqlite3.Error: If a migration statement fails (transaction is rolled back).
    """
    _validate_migration_list(MIGRATIONS)
    conn.execute(_SCHEMA_VERSION_DDL)
    conn.commit()
    current_ver = _get_current_version(conn)

    pending = [m for m in MIGRATIONS if m.version > current_ver]
    if not pending:
        log.debug("schema already at version %d, no migrations to run", current_ver)
        return

    for migration in pending:
        _apply_migration(conn, migration)
        log.info("applied migration v%d: %s", migration.version, migration.description)


def _validate_migration_list(migrations: list[Migration]) -> None:
    """Raise ValueError if migration version numbers are not consecutive from 1."""
    for expected, m in enumerate(migrations, start=1):
        if m.version != expected:
            raise ValueError(
                f"MIGRATIONS version gap: expected version {expected}, "
                f"got {m.version} (description: {m.description!r})."
            )


def _get_current_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row else 0


def _apply_migration(conn: sqlite3.Connection, migration: Migration) -> None:
    """Execute a single migration inside an explicit transaction.

    Statements run one by one with ``conn.execute()``; ``executescript()``
    would issue an implicit COMMIT and break atomicity.
    """
    conn.execute("BEGIN")
    try:
        statements = [s.strip() for s in migration.sql.split(";") if s.strip()]
        for stmt in statements:
            conn.execute(stmt)
        conn.execute(
            "INSERT OR REPLACE INTO schema_version (id, version) VALUES (1, ?)",
            (migration.version,),
        )
        conn.execute("COMMIT")
    except Exception:
        conn.execute("ROLLBACK")
        raise
