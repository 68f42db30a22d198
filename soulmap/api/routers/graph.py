"""Read endpoints over the knowledge graph.

Routes
------
GET /nodes                        Paginated node listing
GET /edges                        Paginated edge listing (with endpoint labels)
GET /nodes/{node_id}/entries      Ids of the entries that mention a node
GET /nodes/{node_id}/edges        Edges touching a node, heaviest first
GET /top-nodes                    Ranked nodes (global, or ?relatedTo=<node_id>)
GET /soul-map                     Visualisation projection of a user's graph
"""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from soulmap.api.deps import get_db
from soulmap.api.schemas import page_response
from soulmap.config import settings
from soulmap.db.edges import get_edges, list_edges_page
from soulmap.db.models import Edge, Node, TopNode
from soulmap.db.nodes import get_node, get_node_entries, list_nodes_page
from soulmap.graph.queries import soul_map, top_nodes

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _node_response(node: Node) -> dict[str, Any]:
    return {
        "node_id": node.node_id,
        "label": node.label,
        "type": node.type,
        "user_id": node.user_id,
        "created_at": node.created_at,
    }


def _edge_response(edge: Edge) -> dict[str, Any]:
    return {
        "edge_id": edge.edge_id,
        "from_node_id": edge.from_node_id,
        "to_node_id": edge.to_node_id,
        "from_label": edge.from_label,
        "from_type": edge.from_type,
        "to_label": edge.to_label,
        "to_type": edge.to_type,
        "weight": edge.weight,
        "timestamps": edge.timestamps,
        "source_entry_id": edge.source_entry_id,
        "user_id": edge.user_id,
        "created_at": edge.created_at,
    }


def _top_node_response(node: TopNode) -> dict[str, Any]:
    return {
        "node_id": node.node_id,
        "label": node.label,
        "type": node.type,
        "edge_count": node.edge_count,
        "total_weight": node.total_weight,
        "entry_count": node.entry_count,
        "score": node.score,
        "connection_weight": node.connection_weight,
        "connection_type": node.connection_type,
        "created_at": node.created_at,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/nodes")
def list_nodes(
    limit: int = 50,
    offset: int = 0,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Return one page of nodes, newest first."""
    return page_response(list_nodes_page(conn, limit, offset, user_id), _node_response)


@router.get("/edges")
def list_edges(
    limit: int = 50,
    offset: int = 0,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Return one page of edges joined with their endpoint labels."""
    return page_response(list_edges_page(conn, limit, offset, user_id), _edge_response)


@router.get("/nodes/{node_id}/entries")
def node_entries(node_id: str, conn: sqlite3.Connection = Depends(get_db)) -> dict[str, Any]:
    """Return the ids of the entries a node was extracted from."""
    if get_node(conn, node_id) is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id!r}")
    return {"node_id": node_id, "entries": get_node_entries(conn, node_id)}


@router.get("/nodes/{node_id}/edges")
def node_edges(node_id: str, conn: sqlite3.Connection = Depends(get_db)) -> dict[str, Any]:
    """Return the incoming and outgoing edges of a node."""
    if get_node(conn, node_id) is None:
        raise HTTPException(status_code=404, detail=f"Node not found: {node_id!r}")
    return {"node_id": node_id, "edges": [_edge_response(e) for e in get_edges(conn, node_id)]}


@router.get("/top-nodes")
def top(
    limit: int = 5,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    related_to: Optional[str] = Query(default=None, alias="relatedTo"),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Rank nodes by connectivity, optionally around one node."""
    ranked = top_nodes(conn, limit=limit, user_id=user_id, related_to=related_to)
    return {"success": True, "data": [_top_node_response(n) for n in ranked]}


@router.get("/soul-map")
def get_soul_map(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Return the nodes, edges and summary stats the visualisation draws."""
    result = soul_map(conn, user_id or settings.default_user_id)
    return {
        "nodes": [
            {
                "id": n.node_id,
                "label": n.label,
                "type": n.type,
                "strength": n.strength,
                "sentiment": n.sentiment,
                "intensity": n.intensity,
                "mentionCount": n.mention_count,
                "properties": n.properties,
            }
            for n in result.nodes
        ],
        "edges": [
            {
                "id": e.edge_id,
                "from": e.from_label,
                "to": e.to_label,
                "type": e.type,
                "weight": e.weight,
                "sentiment": e.sentiment,
                "context": e.context,
                "coOccurrenceCount": e.co_occurrence_count,
            }
            for e in result.edges
        ],
        "stats": {
            "nodeCount": len(result.nodes),
            "edgeCount": len(result.edges),
            "strongestNode": result.strongest_node,
        },
    }
