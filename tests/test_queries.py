"""Tests for paginated listings, top-node ranking and the soul map."""

from __future__ import annotations

import sqlite3
from typing import Generator

import pytest

from soulmap.db.connection import get_connection, transaction
from soulmap.db.edges import insert_edge, list_edges_page
from soulmap.db.entries import save_entry
from soulmap.db.migrations import init_db
from soulmap.db.nodes import list_nodes_page, map_node_to_entry, upsert_node
from soulmap.graph.queries import SOUL_MAP_NODE_LIMIT, soul_map, top_nodes
from soulmap.graph.scoring import node_score

USER = "user-1"


@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def entry_id(conn: sqlite3.Connection) -> str:
    return save_entry(conn, user_id=USER, content="seed", created_at=1000)


@pytest.fixture()
def ranked_graph(conn: sqlite3.Connection, entry_id: str) -> dict[str, str]:
    """Three hubs pointing at five leaves with distinct weights.

    hub1 → L1..L5 (w=1.0)   edge_count 5, total_weight 1.0
    hub2 → L1..L5 (w=2.0)   edge_count 5, total_weight 2.0
    hub3 → L1..L3 (w=9.0)   edge_count 3, total_weight 9.0
    L1..L3                  edge_count 3, total_weight 4.0
    L4, L5                  edge_count 2, total_weight 1.5
    """
    ids: dict[str, str] = {}
    with transaction(conn):
        for i, name in enumerate(["hub1", "hub2", "hub3", "L1", "L2", "L3", "L4", "L5"]):
            ids[name], _ = upsert_node(conn, name, "theme", USER, 100 + i)
        for hub, weight, leaves in [
            ("hub1", 1.0, ["L1", "L2", "L3", "L4", "L5"]),
            ("hub2", 2.0, ["L1", "L2", "L3", "L4", "L5"]),
            ("hub3", 9.0, ["L1", "L2", "L3"]),
        ]:
            for leaf in leaves:
                insert_edge(conn, ids[hub], ids[leaf], weight, entry_id, USER, 500)
    return ids


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

class TestPagination:
    def test_last_partial_page(self, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            for i in range(120):
                upsert_node(conn, f"node-{i}", "theme", USER, i)

        page = list_nodes_page(conn, limit=50, offset=100)

        assert len(page.data) == 20
        assert page.pagination.total == 120
        assert page.pagination.has_more is False

    def test_middle_page_has_more(self, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            for i in range(120):
                upsert_node(conn, f"node-{i}", "theme", USER, i)
        page = list_nodes_page(conn, limit=50, offset=50)
        assert len(page.data) == 50
        assert page.pagination.has_more is True
        # Newest first.
        assert page.data[0].label == "node-69"

    def test_edges_carry_endpoint_labels(self, conn, ranked_graph) -> None:
        page = list_edges_page(conn, limit=100)
        assert page.pagination.total == 13
        edge = page.data[0]
        assert edge.from_label.startswith("hub")  # type: ignore[union-attr]
        assert edge.to_label.startswith("L")  # type: ignore[union-attr]
        assert edge.from_type == edge.to_type == "theme"


# ---------------------------------------------------------------------------
# Top nodes
# ---------------------------------------------------------------------------

class TestTopNodes:
    def test_global_ranking(self, conn, ranked_graph) -> None:
        top = top_nodes(conn, limit=3)
        assert [n.label for n in top] == ["hub2", "hub1", "hub3"]

        hub2 = top[0]
        assert hub2.edge_count == 5
        assert hub2.total_weight == pytest.approx(2.0)
        assert hub2.connection_type == "none"
        assert hub2.connection_weight == 0

    def test_ranking_is_deterministic(self, conn, ranked_graph) -> None:
        first = [n.node_id for n in top_nodes(conn, limit=8)]
        for _ in range(3):
            assert [n.node_id for n in top_nodes(conn, limit=8)] == first

    def test_full_ties_break_on_newest_then_id(self, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            upsert_node(conn, "older", "theme", USER, 100)
            upsert_node(conn, "newer", "theme", USER, 200)
        assert [n.label for n in top_nodes(conn)] == ["newer", "older"]

    def test_entry_count_and_score(self, conn, entry_id) -> None:
        with transaction(conn):
            node_id, _ = upsert_node(conn, "Mom", "person", USER, 100)
            map_node_to_entry(conn, node_id, entry_id, USER, 100)
        [top] = top_nodes(conn, limit=1)
        assert top.entry_count == 1
        assert top.score == node_score(0, 0.0, 1) == 1

    def test_user_filter(self, conn, ranked_graph) -> None:
        assert top_nodes(conn, user_id="someone-else") == []

    def test_relative_mode_outgoing(self, conn, ranked_graph) -> None:
        related = top_nodes(conn, limit=5, related_to=ranked_graph["L1"])
        assert [n.label for n in related] == ["hub3", "hub2", "hub1"]
        assert all(n.connection_type == "outgoing" for n in related)
        assert related[0].connection_weight == pytest.approx(9.0)

    def test_relative_mode_incoming(self, conn, ranked_graph) -> None:
        related = top_nodes(conn, limit=5, related_to=ranked_graph["hub3"])
        assert {n.label for n in related} == {"L1", "L2", "L3"}
        assert all(n.connection_type == "incoming" for n in related)
        assert all(n.connection_weight == pytest.approx(9.0) for n in related)

    def test_relative_mode_excludes_unconnected_and_self(self, conn, ranked_graph) -> None:
        labels = {n.label for n in top_nodes(conn, limit=10, related_to=ranked_graph["L4"])}
        assert labels == {"hub1", "hub2"}


# ---------------------------------------------------------------------------
# Soul map
# ---------------------------------------------------------------------------

class TestSoulMap:
    def test_empty(self, conn: sqlite3.Connection) -> None:
        result = soul_map(conn, USER)
        assert result.nodes == []
        assert result.edges == []
        assert result.strongest_node == "None"

    def test_projection(self, conn, ranked_graph) -> None:
        result = soul_map(conn, USER)
        assert len(result.nodes) == 8
        assert len(result.edges) == 13
        assert result.edges[0].weight == pytest.approx(9.0)
        assert result.edges[0].from_label == "hub3"
        node = result.nodes[0]
        assert (node.strength, node.sentiment, node.intensity, node.mention_count) == (1, 0, 0, 1)
        assert result.edges[0].type == "relationship"
        assert result.edges[0].co_occurrence_count == 1

    def test_zero_weight_shown_as_default(self, conn, entry_id) -> None:
        with transaction(conn):
            a, _ = upsert_node(conn, "a", "theme", USER, 1)
            b, _ = upsert_node(conn, "b", "theme", USER, 2)
            insert_edge(conn, a, b, 0.0, entry_id, USER, 3)
        assert soul_map(conn, USER).edges[0].weight == 1

    def test_node_limit(self, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            for i in range(SOUL_MAP_NODE_LIMIT + 10):
                upsert_node(conn, f"n{i}", "theme", USER, i)
        assert len(soul_map(conn, USER).nodes) == SOUL_MAP_NODE_LIMIT

    def test_scoped_to_user(self, conn, ranked_graph) -> None:
        assert soul_map(conn, "someone-else").nodes == []
