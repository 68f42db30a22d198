"""Best-effort title / emoji / summary generation for a journal entry."""

from __future__ import annotations

from typing import Any, Callable, Optional

from soulmap.ai.llm import complete as default_complete
from soulmap.ai.parsing import parse_json_object
from soulmap.ai.prompts import summarize_entry_prompt
from soulmap.db.models import Summaries
from soulmap.logger import get_logger

logger = get_logger(__name__)


def _text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def summarize_entry(
    text: str,
    complete: Optional[Callable[[str], str]] = None,
) -> Summaries:
    """Ask the model for display fields of *text*.

    Any failure (model error, unparseable reply) is logged and answered with
    an empty :class:`Summaries`; summaries never block saving an entry.
    """
    complete = complete or default_complete
    try:
        raw = complete(summarize_entry_prompt(text))
    except Exception as exc:  # noqa: BLE001
        logger.warning("summary generation failed", extra={"error": str(exc)})
        return Summaries()

    result = parse_json_object(raw)
    if not result.ok:
        logger.warning("summary reply unparseable", extra={"error": result.error, "raw": raw})
        return Summaries()

    data = result.value
    tags = data.get("tags")
    return Summaries(
        title=_text(data.get("title")),
        emoji=_text(data.get("emoji")),
        user_summary=_text(data.get("userSummary")),
        ai_summary=_text(data.get("aiSummary")),
        tags=[t.strip() for t in tags if isinstance(t, str) and t.strip()]
        if isinstance(tags, list)
        else [],
    )
