"""Aggregate read views over the knowledge graph.

``top_nodes``
    Ranks nodes by connectivity.  Global mode orders by
    ``(edge_count, total_weight, entry_count)``; relative mode keeps only the
    direct neighbours of one node and orders by the weight of the connecting
    edge first.

``soul_map``
    The denormalised projection the visualisation consumes: the newest 50
    nodes and the heaviest 100 edges of one user.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

from soulmap.db.models import SoulMap, SoulMapEdge, SoulMapNode, TopNode
from soulmap.graph.scoring import node_score

SOUL_MAP_NODE_LIMIT = 50
SOUL_MAP_EDGE_LIMIT = 100

# Per-node aggregates.  Each side is grouped separately so the joins below
# never multiply rows.
_NODE_STATS = """
    WITH outgoing AS (
        SELECT from_node_id AS node_id, COUNT(*) AS n, AVG(weight) AS avg_weight
        FROM   edges GROUP BY from_node_id
    ),
    incoming AS (
        SELECT to_node_id AS node_id, COUNT(*) AS n, AVG(weight) AS avg_weight
        FROM   edges GROUP BY to_node_id
    ),
    mentions AS (
        SELECT node_id, COUNT(DISTINCT entry_id) AS n
        FROM   node_entry_map GROUP BY node_id
    )
"""

_STAT_COLUMNS = """
    n.node_id, n.label, n.type, n.created_at,
    COALESCE(o.n, 0) + COALESCE(i.n, 0)                   AS edge_count,
    COALESCE(o.avg_weight, 0) + COALESCE(i.avg_weight, 0) AS total_weight,
    COALESCE(m.n, 0)                                      AS entry_count
"""

_STAT_JOINS = """
    LEFT JOIN outgoing o ON o.node_id = n.node_id
    LEFT JOIN incoming i ON i.node_id = n.node_id
    LEFT JOIN mentions m ON m.node_id = n.node_id
"""


def _row_to_top_node(row: sqlite3.Row) -> TopNode:
    edge_count = int(row["edge_count"])
    total_weight = float(row["total_weight"])
    entry_count = int(row["entry_count"])
    return TopNode(
        node_id=row["node_id"],
        label=row["label"],
        type=row["type"],
        edge_count=edge_count,
        total_weight=total_weight,
        entry_count=entry_count,
        score=node_score(edge_count, total_weight, entry_count),
        connection_weight=float(row["connection_weight"] or 0),
        connection_type=row["connection_type"],
        created_at=row["created_at"],
    )


def top_nodes(
    conn: sqlite3.Connection,
    limit: int = 5,
    user_id: Optional[str] = None,
    related_to: Optional[str] = None,
) -> list[TopNode]:
    """Return the *limit* most important nodes.

    Args:
        conn: Open DB connection.
        limit: Maximum number of nodes returned.
        user_id: Restrict to one user's nodes; ``None`` ranks every node.
        related_to: Node id.  When given, only nodes with a direct edge to
            or from it are ranked, and each result carries the weight and
            direction of that edge.

    Returns:
        Ranked :class:`~soulmap.db.models.TopNode` list.  Ties on every
        ordering key fall back to newest first, then id.
    """
    params: dict[str, Any] = {"limit": max(0, int(limit)), "user_id": user_id}
    user_clause = "AND n.user_id = :user_id" if user_id else ""

    if related_to:
        params["related_to"] = related_to
        sql = f"""
            {_NODE_STATS}
            SELECT {_STAT_COLUMNS},
                   COALESCE(e_to.weight, e_from.weight, 0) AS connection_weight,
                   CASE WHEN e_to.edge_id IS NOT NULL THEN 'incoming'
                        ELSE 'outgoing' END                AS connection_type
            FROM   nodes n
            {_STAT_JOINS}
            LEFT JOIN edges e_to
                   ON e_to.to_node_id = n.node_id AND e_to.from_node_id = :related_to
            LEFT JOIN edges e_from
                   ON e_from.from_node_id = n.node_id AND e_from.to_node_id = :related_to
            WHERE  n.node_id != :related_to
              AND  (e_to.edge_id IS NOT NULL OR e_from.edge_id IS NOT NULL)
              {user_clause}
            ORDER  BY connection_weight DESC, edge_count DESC, total_weight DESC,
                      n.created_at DESC, n.node_id
            LIMIT  :limit
        """
    else:
        sql = f"""
            {_NODE_STATS}
            SELECT {_STAT_COLUMNS},
                   0      AS connection_weight,
                   'none' AS connection_type
            FROM   nodes n
            {_STAT_JOINS}
            WHERE  1 = 1 {user_clause}
            ORDER  BY edge_count DESC, total_weight DESC, entry_count DESC,
                      n.created_at DESC, n.node_id
            LIMIT  :limit
        """

    rows = conn.execute(sql, params).fetchall()
    return [_row_to_top_node(r) for r in rows]


def soul_map(conn: sqlite3.Connection, user_id: str) -> SoulMap:
    """Build the visualisation projection of *user_id*'s graph."""
    node_rows = conn.execute(
        """
        SELECT node_id, label, type FROM nodes
        WHERE  user_id = ?
        ORDER  BY created_at DESC, node_id
        LIMIT  ?
        """,
        (user_id, SOUL_MAP_NODE_LIMIT),
    ).fetchall()

    edge_rows = conn.execute(
        """
        SELECT e.edge_id, e.weight, n1.label AS from_label, n2.label AS to_label
        FROM   edges e
        JOIN   nodes n1 ON e.from_node_id = n1.node_id
        JOIN   nodes n2 ON e.to_node_id   = n2.node_id
        WHERE  e.user_id = ?
        ORDER  BY e.weight DESC, e.edge_id
        LIMIT  ?
        """,
        (user_id, SOUL_MAP_EDGE_LIMIT),
    ).fetchall()

    nodes = [
        SoulMapNode(
            node_id=r["node_id"],
            label=r["label"] or f"Node {i}",
            type=r["type"] or "Unknown",
        )
        for i, r in enumerate(node_rows)
    ]
    edges = [
        SoulMapEdge(
            edge_id=r["edge_id"],
            from_label=r["from_label"],
            to_label=r["to_label"],
            # A zero weight is shown at the default strength.
            weight=r["weight"] or 1,
        )
        for r in edge_rows
    ]
    return SoulMap(nodes=nodes, edges=edges)
