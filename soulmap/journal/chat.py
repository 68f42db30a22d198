"""Companion turn of a journaling conversation.

The client keeps the running conversation and posts it here after each user
message; the reply is appended client-side.  When the user is done, the same
``chat`` array goes to :func:`soulmap.journal.finish.finish_entry`.
"""

from __future__ import annotations

from typing import Any, Callable

from soulmap.ai.llm import complete as llm_complete
from soulmap.ai.prompts import companion_prompt
from soulmap.journal.finish import role_prefixed, validate_chat
from soulmap.logger import get_logger

logger = get_logger(__name__)


def companion_reply(chat: Any, *, complete: Callable[[str], str] = llm_complete) -> str:
    """Return the companion's next message for *chat*.

    Raises:
        InvalidRequestError: Malformed *chat*.
        Exception: Whatever the LLM call raised.
    """
    messages = validate_chat(chat)
    reply = complete(companion_prompt(role_prefixed(messages))).strip()
    logger.info("companion replied", extra={"message_count": len(messages)})
    return reply
