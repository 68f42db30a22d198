"""Semantic search endpoint.

Routes
------
POST /search    {query, userId?} → {query, response, related_entries}
"""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from soulmap.ai.embedder import embed_text
from soulmap.ai.llm import complete
from soulmap.api.deps import get_db
from soulmap.errors import EmbeddingError
from soulmap.journal.reflect import reflect

router = APIRouter()


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = ""
    user_id: Optional[str] = Field(default=None, alias="userId")


@router.post("")
def search(body: SearchRequest, conn: sqlite3.Connection = Depends(get_db)) -> dict[str, Any]:
    """Return the entries closest to *query* and an LLM answer grounded on them."""
    try:
        result = reflect(conn, body.query, body.user_id, embed=embed_text, complete=complete)
    except (EmbeddingError, httpx.HTTPError) as exc:
        raise HTTPException(
            status_code=503,
            detail=f"Embedding service unavailable ({exc}).",
        ) from exc

    return {
        "query": result.query,
        "response": result.response,
        "related_entries": [
            {
                "journal_entry_id": hit.entry.journal_entry_id,
                "content": hit.entry.content,
                "title": hit.entry.title,
                "created_at": hit.entry.created_at,
                "metadata": hit.entry.metadata,
                "similarity_score": hit.similarity,
            }
            for hit in result.related
        ],
    }
