"""One-shot language-model completion.

``complete`` sends a single prompt to the configured chat model and returns
the raw reply text.  The reply is *not* interpreted here; callers that expect
JSON run it through :func:`soulmap.ai.parsing.parse_json_object`.
"""

from __future__ import annotations

from typing import Any

from soulmap.config import settings


def _get_llm() -> Any:
    """Return a configured LangChain chat model based on ``settings``."""
    if settings.llm_provider == "openai":
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=settings.openai_chat_model,
            temperature=0,
            timeout=settings.request_timeout,
        )

    from langchain_ollama import ChatOllama

    return ChatOllama(model=settings.ollama_chat_model, temperature=0)


def complete(prompt: str) -> str:
    """Return the model's raw text reply to *prompt*.

    Errors from the provider propagate unchanged; there is no retry.
    """
    response = _get_llm().invoke(prompt)
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        # Multi-part replies: keep the text parts only.
        return "".join(
            part if isinstance(part, str) else part.get("text", "")
            for part in content
        )
    return str(content)
