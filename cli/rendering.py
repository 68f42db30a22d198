"""Utilities for rendering graph views in the CLI."""

from __future__ import annotations

from typing import List

from soulmap.db.models import SoulMap, TopNode

_TYPE_ICONS = {
    "emotion": "💭",
    "theme": "🧭",
    "person": "👤",
    "event": "📅",
}


def _get_icon(node_type: str) -> str:
    return _TYPE_ICONS.get(node_type.lower(), "•")


def render_top_nodes(nodes: List[TopNode], relative: bool = False) -> str:
    """Render ranked nodes as aligned rows.

    In relative mode each row also shows the direction and weight of the
    edge that links it to the queried node.
    """
    width = max(len(n.label) for n in nodes)
    lines = []
    for rank, n in enumerate(nodes, start=1):
        line = (
            f"{rank:>2}. {_get_icon(n.type)} {n.label:<{width}}  "
            f"edges={n.edge_count} weight={n.total_weight:+.2f} entries={n.entry_count}"
        )
        if relative:
            arrow = "←" if n.connection_type == "incoming" else "→"
            line += f"  {arrow} {n.connection_weight:+.2f}"
        lines.append(line)
    return "\n".join(lines)


def render_soul_map(soul_map: SoulMap) -> str:
    """Render nodes and connections of a soul map, strongest edges first."""
    if not soul_map.nodes:
        return "Soul map is empty."

    lines = [
        f"{len(soul_map.nodes)} nodes, {len(soul_map.edges)} connections "
        f"(strongest: {soul_map.strongest_node})",
        "",
    ]
    for n in soul_map.nodes:
        lines.append(f"  {_get_icon(n.type)} {n.label} [{n.type}]")
    if soul_map.edges:
        lines.append("")
        for e in soul_map.edges:
            lines.append(f"  {e.from_label} ──({e.weight:+.2f})──▶ {e.to_label}")
    return "\n".join(lines)
