"""CRUD helpers for journal entries, their tags and their embeddings.

An entry's content is immutable once saved; only ``title`` and ``emoji`` can
be edited afterwards.  The embedding lives in the ``journal_entries_vec``
sqlite-vec table and is written only when one was computed.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from time import time
from typing import Any, Optional

import sqlite_vec

from soulmap.db.models import JournalEntry, Page, Summaries
from soulmap.db.pagination import clamp, paginate
from soulmap.errors import EntryNotFoundError


_EDITABLE = {"title", "emoji"}


def _tags_for(conn: sqlite3.Connection, entry_id: str) -> list[str]:
    rows = conn.execute(
        "SELECT tag FROM journal_entry_tags WHERE journal_entry_id = ? ORDER BY tag",
        (entry_id,),
    ).fetchall()
    return [r["tag"] for r in rows]


def _row_to_entry(conn: sqlite3.Connection, row: sqlite3.Row) -> JournalEntry:
    return JournalEntry(
        journal_entry_id=row["journal_entry_id"],
        user_id=row["user_id"],
        content=row["content"],
        title=row["title"],
        emoji=row["emoji"],
        user_summary=row["user_summary"],
        ai_summary=row["ai_summary"],
        metadata=json.loads(row["metadata"] or "{}"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        tags=_tags_for(conn, row["journal_entry_id"]),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def save_entry(
    conn: sqlite3.Connection,
    user_id: str,
    content: str,
    embedding: Optional[list[float]] = None,
    metadata: Optional[dict[str, Any]] = None,
    summaries: Optional[Summaries] = None,
    entry_id: Optional[str] = None,
    created_at: Optional[int] = None,
) -> str:
    """Insert an entry with its tags and embedding in a single commit.

    Args:
        conn: Open DB connection.
        user_id: Owner of the entry.
        content: Flattened conversation text.
        embedding: Vector for semantic search; ``None`` leaves it unset.
        metadata: Free-form key/value pairs stored as a JSON blob.
        summaries: Optional title/emoji/summary/tags.
        entry_id: Explicit id override (client-generated ids from offline
            devices).  Auto-generated when omitted.
        created_at: Unix timestamp override, defaults to now.

    Returns:
        The id of the new entry.
    """
    eid = entry_id or str(uuid.uuid4())
    now = int(time())
    summaries = summaries or Summaries()

    with conn:
        conn.execute(
            """
            INSERT INTO journal_entries (journal_entry_id, user_id, content, title, emoji,
                                         user_summary, ai_summary, metadata,
                                         created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                eid,
                user_id,
                content,
                summaries.title,
                summaries.emoji,
                summaries.user_summary,
                summaries.ai_summary,
                json.dumps(metadata or {}),
                created_at or now,
                now,
            ),
        )
        conn.executemany(
            "INSERT OR IGNORE INTO journal_entry_tags (journal_entry_id, tag) VALUES (?, ?)",
            [(eid, tag) for tag in summaries.tags],
        )
        if embedding is not None:
            conn.execute(
                "INSERT INTO journal_entries_vec (journal_entry_id, user_id, embedding) VALUES (?, ?, ?)",
                (eid, user_id, sqlite_vec.serialize_float32(embedding)),
            )

    return eid


def entry_exists(conn: sqlite3.Connection, entry_id: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM journal_entries WHERE journal_entry_id = ?", (entry_id,)
    ).fetchone()
    return row is not None


def get_entry(conn: sqlite3.Connection, entry_id: str) -> Optional[JournalEntry]:
    """Fetch a single entry by id.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM journal_entries WHERE journal_entry_id = ?", (entry_id,)
    ).fetchone()
    return _row_to_entry(conn, row) if row else None


def list_entries(
    conn: sqlite3.Connection,
    limit: int = 20,
    offset: int = 0,
    user_id: Optional[str] = None,
) -> Page[JournalEntry]:
    """Return one page of entries, newest first."""
    limit, offset = clamp(limit, offset)
    where, params = ("WHERE user_id = ?", [user_id]) if user_id else ("", [])

    total = conn.execute(
        f"SELECT COUNT(*) FROM journal_entries {where}", params
    ).fetchone()[0]
    rows = conn.execute(
        f"""
        SELECT * FROM journal_entries
        {where}
        ORDER BY created_at DESC, journal_entry_id
        LIMIT ? OFFSET ?
        """,
        [*params, limit, offset],
    ).fetchall()
    return Page(
        data=[_row_to_entry(conn, r) for r in rows],
        pagination=paginate(total, limit, offset),
    )


def update_entry(conn: sqlite3.Connection, entry_id: str, **kwargs: Any) -> JournalEntry:
    """Edit the user-editable fields (``title``, ``emoji``) of an entry.

    Raises:
        EntryNotFoundError: If *entry_id* does not exist.
        ValueError: If a non-editable field is given, or no field at all.
    """
    if not entry_exists(conn, entry_id):
        raise EntryNotFoundError(f"Journal entry not found: {entry_id!r}")

    for key in kwargs:
        if key not in _EDITABLE:
            raise ValueError(f"Cannot update field {key!r}")
    if not kwargs:
        raise ValueError("No valid fields provided to update_entry()")

    updates = {**kwargs, "updated_at": int(time())}
    set_clause = ", ".join(f"{col} = ?" for col in updates)
    with conn:
        conn.execute(
            f"UPDATE journal_entries SET {set_clause} WHERE journal_entry_id = ?",  # noqa: S608
            [*updates.values(), entry_id],
        )

    return get_entry(conn, entry_id)  # type: ignore[return-value]


def delete_entry(conn: sqlite3.Connection, entry_id: str) -> None:
    """Delete an entry, its tags, its embedding and its node mappings.

    Nodes and edges themselves are kept.  No-op if the entry does not exist.
    """
    with conn:
        conn.execute(
            "DELETE FROM journal_entries_vec WHERE journal_entry_id = ?", (entry_id,)
        )
        conn.execute(
            "DELETE FROM journal_entries WHERE journal_entry_id = ?", (entry_id,)
        )
