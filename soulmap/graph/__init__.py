"""Knowledge-graph extraction, merge and read views."""

from soulmap.graph.extractor import extract, extract_graph
from soulmap.graph.merge import MergeReport, merge_extraction
from soulmap.graph.models import Extraction, ProposedEdge, ProposedNode
from soulmap.graph.queries import soul_map, top_nodes

__all__ = [
    "Extraction",
    "MergeReport",
    "ProposedEdge",
    "ProposedNode",
    "extract",
    "extract_graph",
    "merge_extraction",
    "soul_map",
    "top_nodes",
]
