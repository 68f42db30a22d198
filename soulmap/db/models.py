"""Dataclass models representing DB rows and query results.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class Node:
    node_id: str
    label: str
    type: str
    user_id: str
    created_at: int


@dataclass
class Edge:
    edge_id: str
    from_node_id: str
    to_node_id: str
    weight: float
    timestamps: list[int]
    source_entry_id: Optional[str]
    user_id: str
    created_at: int
    # Endpoint labels, populated by joined listings only.
    from_label: Optional[str] = None
    from_type: Optional[str] = None
    to_label: Optional[str] = None
    to_type: Optional[str] = None


@dataclass
class JournalEntry:
    journal_entry_id: str
    user_id: str
    content: str
    title: Optional[str]
    emoji: Optional[str]
    user_summary: Optional[str]
    ai_summary: Optional[str]
    metadata: dict[str, Any]
    created_at: int
    updated_at: int
    tags: list[str] = field(default_factory=list)


@dataclass
class Summaries:
    """LLM-derived display fields of an entry; every field may be missing."""

    title: Optional[str] = None
    emoji: Optional[str] = None
    user_summary: Optional[str] = None
    ai_summary: Optional[str] = None
    tags: list[str] = field(default_factory=list)


@dataclass
class Pagination:
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


@dataclass
class Page(Generic[T]):
    data: list[T]
    pagination: Pagination


@dataclass
class TopNode:
    node_id: str
    label: str
    type: str
    edge_count: int
    total_weight: float
    entry_count: int
    score: float
    connection_weight: float
    connection_type: str
    created_at: int


@dataclass
class SoulMapNode:
    node_id: str
    label: str
    type: str
    strength: float = 1
    sentiment: float = 0
    intensity: float = 0
    mention_count: int = 1
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass
class SoulMapEdge:
    edge_id: str
    from_label: str
    to_label: str
    type: str = "relationship"
    weight: float = 1
    sentiment: float = 0
    context: str = ""
    co_occurrence_count: int = 1


@dataclass
class SoulMap:
    nodes: list[SoulMapNode] = field(default_factory=list)
    edges: list[SoulMapEdge] = field(default_factory=list)

    @property
    def strongest_node(self) -> str:
        """Label of the highest-strength node, ``"None"`` for an empty map."""
        if not self.nodes:
            return "None"
        return max(self.nodes, key=lambda n: n.strength).label


@dataclass
class SearchHit:
    entry: JournalEntry
    similarity: float
