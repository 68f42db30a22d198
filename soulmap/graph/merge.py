"""Transactional merge of an extraction into a user's persistent graph.

``merge_extraction`` is the write side of the knowledge graph.  For one
journal entry it:

1. resolves every proposed node to a stored node, keyed by
   ``(label, type, user_id)``, creating it on first mention, and maps the
   node to the entry;
2. resolves every proposed edge through the labels of *this* extraction and
   either creates the edge or records a new mention on it (timestamp
   appended, weight updated by the weight strategy, source entry moved);
3. commits, or rolls everything back if any step raised.

Edges whose endpoints are not among the extraction's own nodes are dropped
and reported in :class:`MergeReport` rather than treated as errors.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from time import time
from typing import Callable, Optional

from soulmap.config import settings
from soulmap.db.connection import transaction
from soulmap.db.edges import find_edge, insert_edge, record_mention
from soulmap.db.models import Edge
from soulmap.db.nodes import map_node_to_entry, upsert_node
from soulmap.errors import GraphMergeError
from soulmap.graph.models import Extraction
from soulmap.logger import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Weight strategies
# ---------------------------------------------------------------------------

WeightStrategy = Callable[[Edge, float], float]


def latest_weight(edge: Edge, new_weight: float) -> float:
    """The newest mention wins."""
    return new_weight


def average_weight(edge: Edge, new_weight: float) -> float:
    """Running mean over every mention, including the new one."""
    mentions = len(edge.timestamps) or 1
    return (edge.weight * mentions + new_weight) / (mentions + 1)


def decayed_weight(edge: Edge, new_weight: float) -> float:
    """Exponential moving average; ``settings.weight_decay_alpha`` is the new mention's share."""
    alpha = settings.weight_decay_alpha
    return alpha * new_weight + (1 - alpha) * edge.weight


WEIGHT_STRATEGIES: dict[str, WeightStrategy] = {
    "latest": latest_weight,
    "average": average_weight,
    "decay": decayed_weight,
}


def get_strategy(name: Optional[str] = None) -> WeightStrategy:
    name = name or settings.weight_strategy
    try:
        return WEIGHT_STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown weight strategy {name!r}; expected one of {sorted(WEIGHT_STRATEGIES)}"
        ) from None


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

@dataclass
class MergeReport:
    nodes_created: int = 0
    nodes_reused: int = 0
    edges_created: int = 0
    edges_updated: int = 0
    skipped_edges: list[tuple[str, str]] = field(default_factory=list)


def _upsert_edge(
    conn: sqlite3.Connection,
    from_node_id: str,
    to_node_id: str,
    weight: float,
    entry_id: str,
    user_id: str,
    now: int,
    strategy: WeightStrategy,
) -> bool:
    """Create or re-mention one edge.  Returns ``True`` when it was created."""
    existing = find_edge(conn, from_node_id, to_node_id, user_id)
    if existing is None:
        insert_edge(conn, from_node_id, to_node_id, weight, entry_id, user_id, now)
        return True
    record_mention(conn, existing, strategy(existing, weight), entry_id, now)
    return False


def merge_extraction(
    conn: sqlite3.Connection,
    user_id: str,
    entry_id: str,
    extraction: Extraction,
    *,
    strategy: Optional[str] = None,
    now: Optional[int] = None,
) -> MergeReport:
    """Upsert *extraction* into *user_id*'s graph, tagged with *entry_id*.

    Args:
        conn: Open DB connection with no transaction in progress.
        user_id: Owner of the graph.
        entry_id: Journal entry the extraction came from.
        extraction: Nodes and edges proposed by the extractor.
        strategy: Weight strategy name (``latest``, ``average``, ``decay``);
            defaults to ``settings.weight_strategy``.
        now: Unix timestamp of this mention; defaults to the current time.

    Returns:
        A :class:`MergeReport` with per-kind counts.

    Raises:
        GraphMergeError: If the store rejected a write.  Nothing from this
            call is persisted in that case.
        ValueError: If *strategy* is unknown.
    """
    weigh = get_strategy(strategy)
    now = int(time()) if now is None else now
    report = MergeReport()

    try:
        with transaction(conn):
            label_to_id: dict[str, str] = {}
            for node in extraction.nodes:
                node_id, created = upsert_node(conn, node.label, node.type, user_id, now)
                if created:
                    report.nodes_created += 1
                else:
                    report.nodes_reused += 1
                label_to_id[node.label] = node_id
                map_node_to_entry(conn, node_id, entry_id, user_id, now)

            for edge in extraction.edges:
                from_id = label_to_id.get(edge.from_)
                to_id = label_to_id.get(edge.to)
                if from_id is None or to_id is None:
                    report.skipped_edges.append((edge.from_, edge.to))
                    continue

                created = _upsert_edge(
                    conn, from_id, to_id, edge.weight, entry_id, user_id, now, weigh
                )
                if created:
                    report.edges_created += 1
                else:
                    report.edges_updated += 1
    except sqlite3.Error as exc:
        logger.error(
            "graph merge rolled back",
            extra={"user_id": user_id, "entry_id": entry_id, "error": str(exc)},
        )
        raise GraphMergeError(f"Graph merge failed for entry {entry_id!r}: {exc}") from exc

    if report.skipped_edges:
        logger.warning(
            "edges skipped: endpoint label not among extracted nodes",
            extra={
                "user_id": user_id,
                "entry_id": entry_id,
                "skipped_edges": [list(pair) for pair in report.skipped_edges],
            },
        )
    return report
