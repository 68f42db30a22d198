"""Journal entry endpoints.

Routes
------
POST   /finish                               Save a finished chat + enrich the graph
GET    /journal-entries                      Paginated entry listing (newest first)
GET    /journal-entries/{entry_id}           Fetch one entry
PATCH  /journal-entries/{entry_id}           Edit title / emoji
DELETE /journal-entries/{entry_id}           Delete an entry (graph nodes are kept)
"""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from soulmap.ai.embedder import embed_text
from soulmap.ai.summaries import summarize_entry
from soulmap.api.deps import get_db
from soulmap.api.schemas import page_response
from soulmap.db.entries import delete_entry, entry_exists, get_entry, list_entries, update_entry
from soulmap.db.models import JournalEntry
from soulmap.errors import EmbeddingError, EntryNotFoundError
from soulmap.graph.extractor import extract_graph
from soulmap.journal.finish import finish_entry
from soulmap.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------

class FinishRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Shape is checked by finish_entry so malformed chats get a 400.
    chat: Any = None
    user_id: Optional[str] = Field(default=None, alias="userId")
    journal_entry_id: Optional[str] = None
    created_at: Optional[str] = None


class FinishResponse(BaseModel):
    success: bool
    entryId: str
    message: str


class EntryUpdate(BaseModel):
    title: Optional[str] = None
    emoji: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _entry_response(entry: JournalEntry) -> dict[str, Any]:
    return {
        "journal_entry_id": entry.journal_entry_id,
        "user_id": entry.user_id,
        "content": entry.content,
        "title": entry.title,
        "emoji": entry.emoji,
        "user_summary": entry.user_summary,
        "ai_summary": entry.ai_summary,
        "tags": entry.tags,
        "metadata": entry.metadata,
        "created_at": entry.created_at,
        "updated_at": entry.updated_at,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/finish", response_model=FinishResponse)
def finish(body: FinishRequest, conn: sqlite3.Connection = Depends(get_db)) -> dict[str, Any]:
    """Save a finished journaling conversation as an entry.

    The entry is saved before graph enrichment runs; a graph failure is
    logged and the request still succeeds.
    """
    try:
        result = finish_entry(
            conn,
            body.chat,
            user_id=body.user_id,
            entry_id=body.journal_entry_id,
            created_at=body.created_at,
            embed=embed_text,
            summarize=summarize_entry,
            extract=extract_graph,
        )
    except (EmbeddingError, httpx.HTTPError) as exc:
        logger.error("embedding failed, entry not saved", extra={"error": str(exc)})
        raise HTTPException(status_code=502, detail=f"Embedding service unavailable ({exc})") from exc

    return {"success": result.success, "entryId": result.entry_id, "message": result.message}


@router.get("/journal-entries")
def list_all(
    limit: int = 20,
    offset: int = 0,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict[str, Any]:
    """Return one page of journal entries."""
    page = list_entries(conn, limit=limit, offset=offset, user_id=user_id)
    return page_response(page, _entry_response)


@router.get("/journal-entries/{entry_id}")
def get_one(entry_id: str, conn: sqlite3.Connection = Depends(get_db)) -> dict[str, Any]:
    """Fetch a single journal entry."""
    entry = get_entry(conn, entry_id)
    if entry is None:
        raise EntryNotFoundError(f"Journal entry not found: {entry_id!r}")
    return _entry_response(entry)


@router.patch("/journal-entries/{entry_id}")
def update(
    entry_id: str, body: EntryUpdate, conn: sqlite3.Connection = Depends(get_db)
) -> dict[str, Any]:
    """Edit the title and/or emoji of an entry."""
    updates = body.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields provided to update.")
    entry = update_entry(conn, entry_id, **updates)
    return _entry_response(entry)


@router.delete("/journal-entries/{entry_id}")
def remove(entry_id: str, conn: sqlite3.Connection = Depends(get_db)) -> dict[str, Any]:
    """Delete an entry, its embedding and its node links."""
    if not entry_exists(conn, entry_id):
        raise EntryNotFoundError(f"Journal entry not found: {entry_id!r}")
    delete_entry(conn, entry_id)
    return {"success": True}
