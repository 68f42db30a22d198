"""Multi-turn exploration of the user's journal.

The opening message of an exploration is first rated by the model for
clarity and explorability.  A vague opener gets a ``followup`` reply that
asks the user to say more; a clear one is rewritten into a richer search
query, matched against past entries, and answered with an ``insight`` that
cites them.  Later turns continue the conversation without a new search.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from soulmap.ai.embedder import embed_text
from soulmap.ai.llm import complete as llm_complete
from soulmap.ai.parsing import parse_json_object
from soulmap.ai.prompts import explore_chat_prompt, explore_preprocess_prompt
from soulmap.config import settings
from soulmap.db.models import SearchHit
from soulmap.db.search import search_entries
from soulmap.journal.finish import role_prefixed, validate_chat
from soulmap.journal.reflect import entry_date
from soulmap.logger import get_logger

logger = get_logger(__name__)

FOLLOWUP = "followup"
INSIGHT = "insight"

MIN_CLARITY = 0.3
MIN_EXPLORABILITY = 0.4
MIN_ENTRY_SIMILARITY = 0.5

DEFAULT_FOLLOWUP = (
    "I'd love to help you explore your thoughts. "
    "Could you tell me more about what's on your mind?"
)


class Assessment(BaseModel):
    """Model rating of an opening explore message."""

    model_config = ConfigDict(populate_by_name=True)

    clarity: float = 0.0
    explorability: float = 0.0
    improved_prompt: Optional[str] = Field(default=None, alias="improvedPrompt")
    user_reply: Optional[str] = Field(default=None, alias="userReply")

    @property
    def confident(self) -> bool:
        return self.clarity >= MIN_CLARITY and self.explorability >= MIN_EXPLORABILITY


@dataclass
class ExploreReply:
    type: str
    reply: str
    entries: list[SearchHit] = field(default_factory=list)


def assess(message: str, complete: Callable[[str], str]) -> Assessment:
    """Rate *message*; an unreadable rating counts as zero confidence."""
    parsed = parse_json_object(complete(explore_preprocess_prompt(message)))
    if not parsed.ok:
        logger.warning("explore assessment unreadable", extra={"error": parsed.error})
        return Assessment()
    try:
        return Assessment.model_validate(parsed.value)
    except ValidationError as exc:
        logger.warning("explore assessment invalid", extra={"error": str(exc)})
        return Assessment()


def explore(
    conn: sqlite3.Connection,
    chat: Any,
    user_id: Optional[str] = None,
    *,
    embed: Callable[[str], list[float]] = embed_text,
    complete: Callable[[str], str] = llm_complete,
) -> ExploreReply:
    """Answer the latest turn of an exploration.

    Raises:
        InvalidRequestError: Malformed *chat*.
        Exception: Whatever the embedder or the LLM call raised.
    """
    messages = validate_chat(chat)
    conversation = role_prefixed(messages)

    if len(messages) > 1:
        reply = complete(explore_chat_prompt(conversation, [])).strip()
        return ExploreReply(INSIGHT, reply)

    opener = messages[0]["content"]
    assessment = assess(opener, complete)
    if not assessment.confident:
        logger.info(
            "explore opener needs clarification",
            extra={"clarity": assessment.clarity, "explorability": assessment.explorability},
        )
        return ExploreReply(FOLLOWUP, assessment.user_reply or DEFAULT_FOLLOWUP)

    hits = search_entries(
        conn,
        embed(assessment.improved_prompt or opener),
        user_id or settings.default_user_id,
        min_similarity=MIN_ENTRY_SIMILARITY,
    )
    related = [(entry_date(h.entry.created_at), h.entry.content) for h in hits]
    reply = complete(explore_chat_prompt(conversation, related)).strip()
    logger.info("explore insight", extra={"related_entries": len(hits)})
    return ExploreReply(INSIGHT, reply, hits)
