"""Operations on the ``nodes`` and ``node_entry_map`` tables.

Write helpers in this module do **not** commit: they are building blocks of
the merge transaction in :mod:`soulmap.graph.merge`, which owns the
``BEGIN``/``COMMIT``.
"""

from __future__ import annotations

import sqlite3
import uuid
from typing import Optional

from soulmap.db.models import Node, Page
from soulmap.db.pagination import clamp, paginate


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_node(row: sqlite3.Row) -> Node:
    return Node(
        node_id=row["node_id"],
        label=row["label"],
        type=row["type"],
        user_id=row["user_id"],
        created_at=row["created_at"],
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_node(conn: sqlite3.Connection, node_id: str) -> Optional[Node]:
    """Fetch a single node by id.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM nodes WHERE node_id = ?", (node_id,)
    ).fetchone()
    return _row_to_node(row) if row else None


def find_node(
    conn: sqlite3.Connection, label: str, node_type: str, user_id: str
) -> Optional[Node]:
    """Look a node up by its identity key ``(label, type, user_id)``."""
    row = conn.execute(
        "SELECT * FROM nodes WHERE label = ? AND type = ? AND user_id = ?",
        (label, node_type, user_id),
    ).fetchone()
    return _row_to_node(row) if row else None


def list_nodes_page(
    conn: sqlite3.Connection,
    limit: int = 50,
    offset: int = 0,
    user_id: Optional[str] = None,
) -> Page[Node]:
    """Return one page of nodes, newest first, with pagination info."""
    limit, offset = clamp(limit, offset)
    where, params = ("WHERE user_id = ?", [user_id]) if user_id else ("", [])

    total = conn.execute(f"SELECT COUNT(*) FROM nodes {where}", params).fetchone()[0]
    rows = conn.execute(
        f"""
        SELECT * FROM nodes
        {where}
        ORDER BY created_at DESC, node_id
        LIMIT ? OFFSET ?
        """,
        [*params, limit, offset],
    ).fetchall()
    return Page(data=[_row_to_node(r) for r in rows], pagination=paginate(total, limit, offset))


def get_node_entries(conn: sqlite3.Connection, node_id: str) -> list[str]:
    """Return the ids of every entry that mentioned *node_id*, newest first."""
    rows = conn.execute(
        """
        SELECT entry_id FROM node_entry_map
        WHERE  node_id = ?
        ORDER  BY created_at DESC, entry_id
        """,
        (node_id,),
    ).fetchall()
    return [r["entry_id"] for r in rows]


# ---------------------------------------------------------------------------
# Writes (caller owns the transaction)
# ---------------------------------------------------------------------------

def upsert_node(
    conn: sqlite3.Connection,
    label: str,
    node_type: str,
    user_id: str,
    now: int,
) -> tuple[str, bool]:
    """Resolve ``(label, type, user_id)`` to a node id, creating it if needed.

    ``INSERT OR IGNORE`` against the unique key followed by a lookup means
    two writers proposing the same concept always end up with one row.

    Returns:
        ``(node_id, created)``.
    """
    cur = conn.execute(
        """
        INSERT OR IGNORE INTO nodes (node_id, label, type, user_id, created_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (str(uuid.uuid4()), label, node_type, user_id, now),
    )
    row = conn.execute(
        "SELECT node_id FROM nodes WHERE label = ? AND type = ? AND user_id = ?",
        (label, node_type, user_id),
    ).fetchone()
    return row["node_id"], cur.rowcount == 1


def map_node_to_entry(
    conn: sqlite3.Connection,
    node_id: str,
    entry_id: str,
    user_id: str,
    now: int,
) -> None:
    """Link *node_id* to *entry_id*; repeating the pair is a no-op."""
    conn.execute(
        """
        INSERT OR IGNORE INTO node_entry_map (node_id, entry_id, user_id, created_at)
        VALUES (?, ?, ?, ?)
        """,
        (node_id, entry_id, user_id, now),
    )
