"""Conversational endpoints.

Routes
------
POST /chat       {chat}          → {reply}
POST /explore    {chat, userId?} → {type, reply, entries?}
"""

from __future__ import annotations

import sqlite3
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from soulmap.ai.embedder import embed_text
from soulmap.ai.llm import complete
from soulmap.api.deps import get_db
from soulmap.errors import EmbeddingError, InvalidRequestError
from soulmap.journal.chat import companion_reply
from soulmap.journal.explore import INSIGHT, explore
from soulmap.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat: Any = None
    user_id: Optional[str] = Field(default=None, alias="userId")


@router.post("/chat")
def chat(body: ChatRequest) -> dict[str, Any]:
    """Return the companion's reply to the conversation so far."""
    try:
        reply = companion_reply(body.chat, complete=complete)
    except InvalidRequestError:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.error("chat reply failed", extra={"error": str(exc)})
        raise HTTPException(status_code=502, detail="Failed to process chat request") from exc
    return {"reply": reply}


@router.post("/explore")
def explore_journal(
    body: ChatRequest, conn: sqlite3.Connection = Depends(get_db)
) -> dict[str, Any]:
    """Answer one exploration turn, citing related entries on an insight."""
    try:
        result = explore(conn, body.chat, body.user_id, embed=embed_text, complete=complete)
    except InvalidRequestError:
        raise
    except EmbeddingError as exc:
        raise HTTPException(
            status_code=503,
            detail=f"Embedding service unavailable ({exc}).",
        ) from exc
    except sqlite3.Error:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.error("explore reply failed", extra={"error": str(exc)})
        raise HTTPException(status_code=502, detail="Failed to process explore message") from exc

    response: dict[str, Any] = {"type": result.type, "reply": result.reply}
    if result.type == INSIGHT:
        response["entries"] = [
            {
                "id": hit.entry.journal_entry_id,
                "emoji": hit.entry.emoji or "📝",
                "title": hit.entry.title or "Journal Entry",
                "summary": hit.entry.user_summary,
                "date": hit.entry.created_at,
            }
            for hit in result.entries
        ]
    return response
