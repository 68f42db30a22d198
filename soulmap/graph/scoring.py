"""Importance score shown next to each top node.

The three inputs live on different scales (counts vs. averaged weights in
``[-2, 2]``) and are summed without normalisation.  Swap the body here to
change the score; ranking order is decided by the query, not by this value.
"""

from __future__ import annotations


def node_score(edge_count: int, total_weight: float, entry_count: int) -> float:
    return edge_count + total_weight + entry_count
