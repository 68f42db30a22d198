"""Schema creation and versioned upgrades of the journal database.

``init_db(conn)`` creates everything in ``schema.sql`` and then applies the
entries of :data:`MIGRATIONS` the database has not seen yet.  Both steps can
run on every startup.
"""

from __future__ import annotations

import sqlite3

from soulmap.config import settings
from soulmap.db.connection import transaction
from soulmap.logger import get_logger

logger = get_logger(__name__)

# ``(version, statements)`` pairs, applied in ascending version order, each
# version in one transaction.  ``{embedding_dim}`` is substituted as in
# schema.sql.  Append only.
MIGRATIONS: list[tuple[int, tuple[str, ...]]] = [
    # Per-user mention lookups for the soul map and entry deletion.
    (1, (
        "CREATE INDEX IF NOT EXISTS idx_node_entry_map_user ON node_entry_map (user_id, entry_id)",
    )),
    # Rebuild the vector table with the owner as partition key.
    (2, (
        "DROP TABLE IF EXISTS _journal_entries_vec_old",
        """
        CREATE TABLE _journal_entries_vec_old AS
        SELECT journal_entry_id, embedding FROM journal_entries_vec
        """,
        "DROP TABLE journal_entries_vec",
        """
        CREATE VIRTUAL TABLE journal_entries_vec USING vec0(
            journal_entry_id TEXT PRIMARY KEY,
            user_id TEXT PARTITION KEY,
            embedding float[{embedding_dim}] distance_metric=cosine
        )
        """,
        """
        INSERT INTO journal_entries_vec (journal_entry_id, user_id, embedding)
        SELECT o.journal_entry_id, je.user_id, o.embedding
        FROM   _journal_entries_vec_old o
        JOIN   journal_entries je ON je.journal_entry_id = o.journal_entry_id
        """,
        "DROP TABLE _journal_entries_vec_old",
    )),
]


def _fill(sql: str) -> str:
    return sql.replace("{embedding_dim}", str(settings.embedding_dim))


def _read_schema() -> str:
    """Load schema.sql with the configured embedding dimension filled in."""
    return _fill(settings.schema_path.read_text(encoding="utf-8"))


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version    INTEGER PRIMARY KEY,
                applied_at INTEGER DEFAULT (unixepoch())
            )
            """
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def init_db(conn: sqlite3.Connection) -> None:
    """Create tables, indexes and the vector table, then migrate.

    Args:
        conn: An open connection with sqlite-vec already loaded.
    """
    # executescript() commits any pending transaction first; the script is DDL only.
    conn.executescript(_read_schema())
    _ensure_version_table(conn)
    migrate(conn)


def current_version(conn: sqlite3.Connection) -> int:
    """Highest applied migration version, 0 for a fresh schema."""
    row = conn.execute("SELECT COALESCE(MAX(version), 0) FROM schema_version").fetchone()
    return row[0]


def migrate(conn: sqlite3.Connection) -> None:
    """Apply every migration newer than :func:`current_version`, one transaction each."""
    applied = current_version(conn)
    for version, statements in sorted(MIGRATIONS):
        if version <= applied:
            continue
        with transaction(conn):
            for sql in statements:
                conn.execute(_fill(sql))
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (version,))
        logger.info("schema migrated", extra={"version": version})
