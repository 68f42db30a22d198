"""The "finish entry" flow: chat → saved journal entry → graph enrichment.

Phases
------
1. Validate the chat payload (fail fast, no side effects).
2. Flatten the conversation into one text blob.
3. Embed the blob.  **Fatal**: an embedding failure aborts the flow.
4. Generate title / emoji / summaries.  Best-effort.
5. Save the entry.  **Fatal**: without an entry there is nothing to return.
6. Extract a graph from the blob and merge it.  Best-effort: a failed
   extraction or any exception is logged and recorded in the result, never
   raised.  A failed extraction merges nothing.

The outcome of phases 5 and 6 is reported separately in
:class:`FinishResult` so callers can tell "saved and enriched" from "saved,
graph failed".
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Sequence

from soulmap.ai.embedder import embed_text
from soulmap.ai.summaries import summarize_entry
from soulmap.config import settings
from soulmap.db.entries import entry_exists, save_entry
from soulmap.db.models import Summaries
from soulmap.errors import InvalidRequestError
from soulmap.graph.extractor import ExtractionOutcome, extract_graph
from soulmap.graph.merge import MergeReport, merge_extraction
from soulmap.logger import get_logger

logger = get_logger(__name__)

ROLES = {"user": "User", "ai": "Assistant"}

GRAPH_MERGED = "merged"
GRAPH_FAILED = "failed"
GRAPH_SKIPPED = "skipped"


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class EntryPhase:
    entry_id: str
    created: bool


@dataclass
class GraphPhase:
    status: str
    extraction_status: Optional[str] = None
    report: Optional[MergeReport] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == GRAPH_MERGED


@dataclass
class FinishResult:
    entry_saved: EntryPhase
    graph_enriched: GraphPhase = field(default_factory=lambda: GraphPhase(GRAPH_SKIPPED))

    @property
    def success(self) -> bool:
        # The entry is saved by the time a result exists; graph state is informational.
        return True

    @property
    def entry_id(self) -> str:
        return self.entry_saved.entry_id

    @property
    def message(self) -> str:
        if not self.entry_saved.created:
            return "Journal entry already saved."
        if self.graph_enriched.ok:
            return "Journal entry successfully saved and processed."
        return "Journal entry saved; graph processing did not complete."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def validate_chat(chat: Any) -> list[dict[str, str]]:
    """Return *chat* as ``[{"role", "content"}]`` or raise :class:`InvalidRequestError`."""
    if not isinstance(chat, Sequence) or isinstance(chat, (str, bytes)) or not chat:
        raise InvalidRequestError("Invalid chat data: expected a non-empty list of messages")

    messages: list[dict[str, str]] = []
    for i, msg in enumerate(chat):
        if not isinstance(msg, Mapping):
            raise InvalidRequestError(f"Invalid chat data: message {i} is not an object")
        role, content = msg.get("role"), msg.get("content")
        if role not in ROLES:
            raise InvalidRequestError(
                f"Invalid chat data: message {i} has role {role!r}, expected 'user' or 'ai'"
            )
        if not isinstance(content, str):
            raise InvalidRequestError(f"Invalid chat data: message {i} has no text content")
        messages.append({"role": role, "content": content})
    return messages


def role_prefixed(messages: list[dict[str, str]]) -> str:
    """``User: ...`` / ``Assistant: ...`` lines joined by newlines."""
    return "\n".join(f"{ROLES[m['role']]}: {m['content']}" for m in messages)


def flatten_chat(messages: list[dict[str, str]]) -> str:
    """Single-message chats pass through verbatim; longer ones get role prefixes."""
    if len(messages) == 1:
        return messages[0]["content"]
    return role_prefixed(messages)


def parse_created_at(value: Optional[str]) -> Optional[int]:
    """ISO-8601 string → unix seconds.  Naive timestamps are read as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidRequestError(f"Invalid created_at: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _enrich_graph(
    conn: sqlite3.Connection,
    user_id: str,
    entry_id: str,
    text: str,
    extract: Callable[[str], ExtractionOutcome],
) -> GraphPhase:
    """Phase 6.  Never raises."""
    extraction_status = None
    try:
        outcome = extract(text)
        extraction_status = outcome.status
        if not outcome.ok:
            logger.warning(
                "graph extraction failed, entry kept without graph data",
                extra={"entry_id": entry_id, "status": outcome.status, "error": outcome.error},
            )
            return GraphPhase(
                GRAPH_FAILED, extraction_status=extraction_status, error=outcome.error or outcome.status
            )
        report = merge_extraction(conn, user_id, entry_id, outcome.extraction)
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "graph processing failed, entry kept without graph data",
            extra={"entry_id": entry_id, "error": str(exc)},
        )
        return GraphPhase(GRAPH_FAILED, extraction_status=extraction_status, error=str(exc))

    logger.info(
        "graph processing completed",
        extra={
            "entry_id": entry_id,
            "extraction_status": extraction_status,
            "nodes": report.nodes_created + report.nodes_reused,
            "edges": report.edges_created + report.edges_updated,
        },
    )
    return GraphPhase(GRAPH_MERGED, extraction_status=extraction_status, report=report)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def finish_entry(
    conn: sqlite3.Connection,
    chat: Any,
    *,
    user_id: Optional[str] = None,
    entry_id: Optional[str] = None,
    created_at: Optional[str] = None,
    embed: Callable[[str], list[float]] = embed_text,
    summarize: Callable[[str], Summaries] = summarize_entry,
    extract: Callable[[str], ExtractionOutcome] = extract_graph,
) -> FinishResult:
    """Persist a finished journaling conversation and enrich the graph.

    Args:
        conn: Open DB connection.
        chat: ``[{"role": "user"|"ai", "content": str}, ...]``.
        user_id: Owner; defaults to ``settings.default_user_id``.
        entry_id: Client-generated entry id.  If an entry with this id was
            already saved (a retried offline save), the flow stops and
            returns it unchanged.
        created_at: ISO-8601 creation time chosen by the client.
        embed, summarize, extract: Collaborators, injectable for tests.

    Returns:
        A :class:`FinishResult`.

    Raises:
        InvalidRequestError: Malformed *chat* or *created_at*.
        Exception: Whatever the embedder or the entry insert raised.
    """
    messages = validate_chat(chat)
    created_ts = parse_created_at(created_at)
    user_id = user_id or settings.default_user_id

    if entry_id and entry_exists(conn, entry_id):
        logger.info("entry already saved, skipping", extra={"entry_id": entry_id})
        return FinishResult(entry_saved=EntryPhase(entry_id=entry_id, created=False))

    text = flatten_chat(messages)
    embedding = embed(text)
    summaries = summarize(text)

    saved_id = save_entry(
        conn,
        user_id=user_id,
        content=text,
        embedding=embedding,
        metadata={
            "message_count": len(messages),
            "created_via": settings.created_via,
            "model_used": settings.embed_model_name,
        },
        summaries=summaries,
        entry_id=entry_id,
        created_at=created_ts,
    )
    logger.info("journal entry saved", extra={"entry_id": saved_id, "user_id": user_id})

    graph = _enrich_graph(conn, user_id, saved_id, text, extract)
    return FinishResult(
        entry_saved=EntryPhase(entry_id=saved_id, created=True), graph_enriched=graph
    )
