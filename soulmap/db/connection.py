"""SQLite connection factory.

Usage::

    from soulmap.db.connection import get_connection, transaction

    conn = get_connection()
    try:
        with transaction(conn):
            conn.execute("INSERT ...")
    finally:
        conn.close()
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import sqlite_vec

from soulmap.config import settings


def get_connection(db_path: Optional[Path] = None) -> sqlite3.Connection:
    """Open and configure a SQLite connection.

    Steps performed on every new connection:
    1. Load the ``sqlite-vec`` extension (vector search).
    2. Enable ``PRAGMA foreign_keys = ON``.
    3. Switch to WAL journal mode for concurrent readers.
    4. Wait up to five seconds for a competing writer instead of failing.

    Args:
        db_path: Override the DB path.  Defaults to ``settings.db_path``.

    Returns:
        A configured :class:`sqlite3.Connection` with ``row_factory`` set to
        :class:`sqlite3.Row` so columns can be accessed by name.
    """
    path = db_path or settings.db_path

    # Create parent directory if needed (no-op for `:memory:`)
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), check_same_thread=False, timeout=5.0)
    conn.row_factory = sqlite3.Row

    # enable_load_extension must be called before any load attempt;
    # it is immediately disabled again after loading.
    conn.enable_load_extension(True)
    sqlite_vec.load(conn)
    conn.enable_load_extension(False)

    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute("PRAGMA journal_mode = WAL")

    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the enclosed statements as one ``BEGIN IMMEDIATE`` transaction.

    ``IMMEDIATE`` takes the write lock up front, so two concurrent merges for
    the same user serialise instead of racing on the unique keys.  Any
    exception rolls the whole transaction back and is re-raised.
    """
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    else:
        conn.commit()
