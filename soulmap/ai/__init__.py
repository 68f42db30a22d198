"""Clients for the external embedding and language-model APIs."""

from soulmap.ai.embedder import embed_text
from soulmap.ai.llm import complete
from soulmap.ai.parsing import parse_json_object
from soulmap.ai.summaries import summarize_entry

__all__ = ["embed_text", "complete", "parse_json_object", "summarize_entry"]
