"""Semantic search over journal entries.

``search_entries`` runs a K-nearest-neighbour lookup against the
``journal_entries_vec`` sqlite-vec table (cosine distance), constrained to
the user's partition, and keeps the hits that clear a similarity threshold.
"""

from __future__ import annotations

import sqlite3

import sqlite_vec

from soulmap.db.entries import _row_to_entry
from soulmap.db.models import SearchHit


def search_entries(
    conn: sqlite3.Connection,
    embedding: list[float],
    user_id: str,
    top_k: int = 3,
    min_similarity: float = 0.4,
) -> list[SearchHit]:
    """Return up to *top_k* of the user's entries closest to *embedding*.

    ``similarity`` is ``1 - cosine_distance``.
    """
    blob = sqlite_vec.serialize_float32(embedding)
    rows = conn.execute(
        """
        SELECT je.*, v.distance
        FROM   journal_entries_vec v
        JOIN   journal_entries je ON je.journal_entry_id = v.journal_entry_id
        WHERE  v.embedding MATCH ?
          AND  k = ?
          AND  v.user_id = ?
        ORDER  BY v.distance
        """,
        (blob, top_k, user_id),
    ).fetchall()

    return [
        SearchHit(entry=_row_to_entry(conn, row), similarity=1.0 - row["distance"])
        for row in rows
        if 1.0 - row["distance"] > min_similarity
    ]
