"""Operations on the ``edges`` table.

As in :mod:`soulmap.db.nodes`, the write helpers leave transaction control
to the caller.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Optional

from soulmap.db.models import Edge, Page
from soulmap.db.pagination import clamp, paginate


_JOINED_SELECT = """
    SELECT e.*,
           n1.label AS from_label, n1.type AS from_type,
           n2.label AS to_label,   n2.type AS to_type
    FROM   edges e
    JOIN   nodes n1 ON e.from_node_id = n1.node_id
    JOIN   nodes n2 ON e.to_node_id   = n2.node_id
"""


def _row_to_edge(row: sqlite3.Row) -> Edge:
    keys = row.keys()
    return Edge(
        edge_id=row["edge_id"],
        from_node_id=row["from_node_id"],
        to_node_id=row["to_node_id"],
        weight=row["weight"],
        timestamps=json.loads(row["timestamps"] or "[]"),
        source_entry_id=row["source_entry_id"],
        user_id=row["user_id"],
        created_at=row["created_at"],
        from_label=row["from_label"] if "from_label" in keys else None,
        from_type=row["from_type"] if "from_type" in keys else None,
        to_label=row["to_label"] if "to_label" in keys else None,
        to_type=row["to_type"] if "to_type" in keys else None,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def find_edge(
    conn: sqlite3.Connection, from_node_id: str, to_node_id: str, user_id: str
) -> Optional[Edge]:
    """Look an edge up by its identity key ``(from, to, user_id)``."""
    row = conn.execute(
        """
        SELECT * FROM edges
        WHERE  from_node_id = ? AND to_node_id = ? AND user_id = ?
        """,
        (from_node_id, to_node_id, user_id),
    ).fetchone()
    return _row_to_edge(row) if row else None


def get_edges(conn: sqlite3.Connection, node_id: str) -> list[Edge]:
    """Return all edges where *node_id* is the source **or** the target."""
    rows = conn.execute(
        f"""
        {_JOINED_SELECT}
        WHERE  e.from_node_id = ? OR e.to_node_id = ?
        ORDER  BY e.weight DESC
        """,
        (node_id, node_id),
    ).fetchall()
    return [_row_to_edge(r) for r in rows]


def list_edges_page(
    conn: sqlite3.Connection,
    limit: int = 50,
    offset: int = 0,
    user_id: Optional[str] = None,
) -> Page[Edge]:
    """Return one page of edges joined with their endpoint labels and types."""
    limit, offset = clamp(limit, offset)
    where, params = ("WHERE e.user_id = ?", [user_id]) if user_id else ("", [])

    total = conn.execute(
        f"SELECT COUNT(*) FROM edges e {where}", params
    ).fetchone()[0]
    rows = conn.execute(
        f"""
        {_JOINED_SELECT}
        {where}
        ORDER BY e.created_at DESC, e.edge_id
        LIMIT ? OFFSET ?
        """,
        [*params, limit, offset],
    ).fetchall()
    return Page(data=[_row_to_edge(r) for r in rows], pagination=paginate(total, limit, offset))


# ---------------------------------------------------------------------------
# Writes (caller owns the transaction)
# ---------------------------------------------------------------------------

def insert_edge(
    conn: sqlite3.Connection,
    from_node_id: str,
    to_node_id: str,
    weight: float,
    entry_id: str,
    user_id: str,
    now: int,
) -> str:
    """Create an edge whose mention history starts at *now*; return its id."""
    edge_id = str(uuid.uuid4())
    conn.execute(
        """
        INSERT INTO edges (edge_id, from_node_id, to_node_id, weight, timestamps,
                           source_entry_id, user_id, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (edge_id, from_node_id, to_node_id, weight, json.dumps([now]), entry_id, user_id, now),
    )
    return edge_id


def record_mention(
    conn: sqlite3.Connection,
    edge: Edge,
    weight: float,
    entry_id: str,
    now: int,
) -> None:
    """Append *now* to the edge history and set its weight and source entry."""
    conn.execute(
        """
        UPDATE edges
        SET    weight = ?, timestamps = ?, source_entry_id = ?
        WHERE  edge_id = ?
        """,
        (weight, json.dumps([*edge.timestamps, now]), entry_id, edge.edge_id),
    )
