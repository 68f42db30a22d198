"""Database layer tests: connection, schema, entry store, nodes and search.

All tests use an in-memory SQLite database so they are:
- Fast (no disk I/O)
- Isolated (each fixture gets a fresh DB)
- Side-effect free (nothing written to ~/.soulmap_data)

sqlite-vec must be installed (``pip install sqlite-vec``).
"""

from __future__ import annotations

import sqlite3
from typing import Generator

import pytest
import sqlite_vec

from soulmap.config import settings
from soulmap.db.connection import get_connection, transaction
from soulmap.db.entries import (
    delete_entry,
    entry_exists,
    get_entry,
    list_entries,
    save_entry,
    update_entry,
)
from soulmap.db.migrations import MIGRATIONS, current_version, init_db, migrate
from soulmap.db.models import Summaries
from soulmap.db.nodes import (
    find_node,
    get_node,
    get_node_entries,
    list_nodes_page,
    map_node_to_entry,
    upsert_node,
)
from soulmap.db.pagination import clamp
from soulmap.db.search import search_entries
from soulmap.errors import EntryNotFoundError

USER = "user-1"
OTHER = "user-2"


def _unit(index: int) -> list[float]:
    vec = [0.0] * settings.embedding_dim
    vec[index] = 1.0
    return vec


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn() -> Generator[sqlite3.Connection, None, None]:
    """In-memory connection with sqlite-vec loaded and schema initialised."""
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


# ---------------------------------------------------------------------------
# connection / init
# ---------------------------------------------------------------------------

class TestConnection:
    def test_sqlite_vec_loaded(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("SELECT vec_version()").fetchone()
        assert row is not None
        assert row[0]

    def test_foreign_keys_enabled(self, conn: sqlite3.Connection) -> None:
        row = conn.execute("PRAGMA foreign_keys").fetchone()
        assert row[0] == 1

    def test_transaction_rolls_back_on_error(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(RuntimeError):
            with transaction(conn):
                upsert_node(conn, "Mom", "person", USER, 100)
                raise RuntimeError("boom")
        assert conn.execute("SELECT COUNT(*) FROM nodes").fetchone()[0] == 0

    def test_transaction_commits(self, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            upsert_node(conn, "Mom", "person", USER, 100)
        assert conn.execute("SELECT COUNT(*) FROM nodes").fetchone()[0] == 1


class TestInitDb:
    def test_tables_exist(self, conn: sqlite3.Connection) -> None:
        tables = {
            r[0]
            for r in conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        }
        assert {"journal_entries", "journal_entry_tags", "nodes", "edges", "node_entry_map"} <= tables
        assert "journal_entries_vec" in tables

    def test_init_is_idempotent(self, conn: sqlite3.Connection) -> None:
        init_db(conn)
        init_db(conn)
        assert current_version(conn) == max(v for v, _ in MIGRATIONS)
        rows = conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
        assert rows == len(MIGRATIONS)

    def test_migration_index_created(self, conn: sqlite3.Connection) -> None:
        names = {
            r[0]
            for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'index'").fetchall()
        }
        assert "idx_node_entry_map_user" in names


# ---------------------------------------------------------------------------
# pagination
# ---------------------------------------------------------------------------

class TestClamp:
    def test_bounds(self) -> None:
        assert clamp(0, -5) == (1, 0)
        assert clamp(10_000, 3) == (settings.max_page_size, 3)
        assert clamp(50, 100) == (50, 100)


# ---------------------------------------------------------------------------
# entries
# ---------------------------------------------------------------------------

class TestEntries:
    def test_save_and_get(self, conn: sqlite3.Connection) -> None:
        summaries = Summaries(title="Calm", emoji="🌿", tags=["Rest", "Garden"])
        eid = save_entry(
            conn,
            user_id=USER,
            content="Gardening today.",
            embedding=_unit(0),
            metadata={"message_count": 1},
            summaries=summaries,
        )
        entry = get_entry(conn, eid)
        assert entry is not None
        assert entry.content == "Gardening today."
        assert entry.title == "Calm"
        assert entry.emoji == "🌿"
        assert entry.tags == ["Garden", "Rest"]
        assert entry.metadata == {"message_count": 1}

    def test_save_with_client_id_and_timestamp(self, conn: sqlite3.Connection) -> None:
        eid = save_entry(conn, user_id=USER, content="x", entry_id="client-id", created_at=1_700_000_000)
        assert eid == "client-id"
        assert get_entry(conn, eid).created_at == 1_700_000_000  # type: ignore[union-attr]

    def test_save_without_embedding_leaves_vec_empty(self, conn: sqlite3.Connection) -> None:
        save_entry(conn, user_id=USER, content="no vector")
        assert conn.execute("SELECT COUNT(*) FROM journal_entries_vec").fetchone()[0] == 0

    def test_get_missing_returns_none(self, conn: sqlite3.Connection) -> None:
        assert get_entry(conn, "nope") is None

    def test_list_newest_first_with_pagination(self, conn: sqlite3.Connection) -> None:
        for i in range(5):
            save_entry(conn, user_id=USER, content=f"entry {i}", created_at=1000 + i)
        save_entry(conn, user_id=OTHER, content="someone else", created_at=2000)

        page = list_entries(conn, limit=2, offset=0, user_id=USER)
        assert [e.content for e in page.data] == ["entry 4", "entry 3"]
        assert page.pagination.total == 5
        assert page.pagination.has_more is True

        last = list_entries(conn, limit=2, offset=4, user_id=USER)
        assert len(last.data) == 1
        assert last.pagination.has_more is False

    def test_update_title_and_emoji(self, conn: sqlite3.Connection) -> None:
        eid = save_entry(conn, user_id=USER, content="x")
        entry = update_entry(conn, eid, title="New", emoji="✨")
        assert entry.title == "New"
        assert entry.emoji == "✨"

    def test_update_content_rejected(self, conn: sqlite3.Connection) -> None:
        eid = save_entry(conn, user_id=USER, content="x")
        with pytest.raises(ValueError, match="Cannot update field"):
            update_entry(conn, eid, content="rewritten")

    def test_update_missing_raises(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(EntryNotFoundError):
            update_entry(conn, "missing", title="x")

    def test_delete_removes_entry_vector_and_mappings(self, conn: sqlite3.Connection) -> None:
        eid = save_entry(conn, user_id=USER, content="x", embedding=_unit(1))
        with transaction(conn):
            node_id, _ = upsert_node(conn, "Mom", "person", USER, 100)
            map_node_to_entry(conn, node_id, eid, USER, 100)

        delete_entry(conn, eid)

        assert not entry_exists(conn, eid)
        assert conn.execute("SELECT COUNT(*) FROM journal_entries_vec").fetchone()[0] == 0
        assert get_node_entries(conn, node_id) == []
        # The node itself is kept.
        assert get_node(conn, node_id) is not None


# ---------------------------------------------------------------------------
# nodes
# ---------------------------------------------------------------------------

class TestNodes:
    def test_upsert_is_content_addressed(self, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            first, created1 = upsert_node(conn, "Anxiety", "emotion", USER, 100)
            again, created2 = upsert_node(conn, "Anxiety", "emotion", USER, 200)
            other_type, _ = upsert_node(conn, "Anxiety", "theme", USER, 200)
            other_user, _ = upsert_node(conn, "Anxiety", "emotion", OTHER, 200)

        assert created1 is True
        assert created2 is False
        assert first == again
        assert len({first, other_type, other_user}) == 3
        assert find_node(conn, "Anxiety", "emotion", USER).created_at == 100  # type: ignore[union-attr]

    def test_node_entry_mapping_is_idempotent(self, conn: sqlite3.Connection) -> None:
        eid = save_entry(conn, user_id=USER, content="x")
        with transaction(conn):
            node_id, _ = upsert_node(conn, "Mom", "person", USER, 100)
            map_node_to_entry(conn, node_id, eid, USER, 100)
            map_node_to_entry(conn, node_id, eid, USER, 200)
        assert get_node_entries(conn, node_id) == [eid]

    def test_list_nodes_page_filters_by_user(self, conn: sqlite3.Connection) -> None:
        with transaction(conn):
            upsert_node(conn, "A", "theme", USER, 100)
            upsert_node(conn, "B", "theme", OTHER, 100)
        page = list_nodes_page(conn, user_id=USER)
        assert [n.label for n in page.data] == ["A"]
        assert page.pagination.total == 1


# ---------------------------------------------------------------------------
# semantic search
# ---------------------------------------------------------------------------

class TestSearchEntries:
    def test_returns_similar_entries_of_user_only(self, conn: sqlite3.Connection) -> None:
        close = save_entry(conn, user_id=USER, content="close", embedding=_unit(0))
        save_entry(conn, user_id=USER, content="orthogonal", embedding=_unit(1))
        save_entry(conn, user_id=OTHER, content="other user", embedding=_unit(0))

        hits = search_entries(conn, _unit(0), USER)

        assert [h.entry.journal_entry_id for h in hits] == [close]
        assert hits[0].similarity == pytest.approx(1.0)

    def test_no_hits_below_threshold(self, conn: sqlite3.Connection) -> None:
        save_entry(conn, user_id=USER, content="orthogonal", embedding=_unit(1))
        assert search_entries(conn, _unit(0), USER) == []

    def test_other_users_closer_vectors_do_not_hide_own_entry(
        self, conn: sqlite3.Connection
    ) -> None:
        for _ in range(40):
            save_entry(conn, user_id=OTHER, content="other", embedding=_unit(0))
        near = _unit(0)
        near[1] = 0.3
        mine = save_entry(conn, user_id=USER, content="mine", embedding=near)

        hits = search_entries(conn, _unit(0), USER)

        assert [h.entry.journal_entry_id for h in hits] == [mine]
        assert hits[0].similarity == pytest.approx(0.958, abs=1e-3)

    def test_returns_at_most_top_k(self, conn: sqlite3.Connection) -> None:
        for i in range(5):
            save_entry(conn, user_id=USER, content=f"e{i}", embedding=_unit(0))
        assert len(search_entries(conn, _unit(0), USER, top_k=3)) == 3


class TestVectorTableUpgrade:
    def test_unpartitioned_vectors_are_rebuilt_with_owner(
        self, conn: sqlite3.Connection
    ) -> None:
        eid = save_entry(conn, user_id=USER, content="before upgrade")
        # Recreate the layout without the owner column and roll back to v1.
        conn.execute("DROP TABLE journal_entries_vec")
        conn.execute(
            f"""
            CREATE VIRTUAL TABLE journal_entries_vec USING vec0(
                journal_entry_id TEXT PRIMARY KEY,
                embedding float[{settings.embedding_dim}] distance_metric=cosine
            )
            """
        )
        with conn:
            conn.execute(
                "INSERT INTO journal_entries_vec (journal_entry_id, embedding) VALUES (?, ?)",
                (eid, sqlite_vec.serialize_float32(_unit(2))),
            )
            conn.execute("DELETE FROM schema_version WHERE version >= 2")

        migrate(conn)

        assert current_version(conn) == max(v for v, _ in MIGRATIONS)
        hits = search_entries(conn, _unit(2), USER)
        assert [h.entry.journal_entry_id for h in hits] == [eid]
        assert search_entries(conn, _unit(2), OTHER) == []
