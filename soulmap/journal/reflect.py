"""Answer a question about the user's past from their most similar entries."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

from soulmap.ai.embedder import embed_text
from soulmap.ai.llm import complete as llm_complete
from soulmap.ai.prompts import reflection_prompt
from soulmap.config import settings
from soulmap.db.models import SearchHit
from soulmap.db.search import search_entries
from soulmap.errors import InvalidRequestError
from soulmap.logger import get_logger

logger = get_logger(__name__)

FALLBACK_RESPONSE = "I could not generate a response at this time."


@dataclass
class Reflection:
    query: str
    response: str
    related: list[SearchHit] = field(default_factory=list)


def entry_date(ts: int) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).date().isoformat()


def reflect(
    conn: sqlite3.Connection,
    query: str,
    user_id: Optional[str] = None,
    *,
    embed: Callable[[str], list[float]] = embed_text,
    complete: Callable[[str], str] = llm_complete,
) -> Reflection:
    """Find up to three related entries and have the LLM answer *query* from them.

    Raises:
        InvalidRequestError: Empty query.
        Exception: Whatever the embedder raised.  A failing LLM call only
            replaces the answer with a fallback sentence.
    """
    if not isinstance(query, str) or not query.strip():
        raise InvalidRequestError("Query is required")

    hits = search_entries(conn, embed(query), user_id or settings.default_user_id)
    prompt = reflection_prompt(
        query, [(entry_date(h.entry.created_at), h.entry.content) for h in hits]
    )
    try:
        response = complete(prompt).strip() or FALLBACK_RESPONSE
    except Exception as exc:  # noqa: BLE001
        logger.warning("reflection call failed", extra={"error": str(exc)})
        response = FALLBACK_RESPONSE
    return Reflection(query=query, response=response, related=hits)
