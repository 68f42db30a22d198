"""Journal text → proposed knowledge-graph extraction.

``extract_graph`` builds the extraction prompt, asks the language model, and
decodes the reply.  Graph enrichment is best-effort, so every failure mode
(model error, unparseable reply, wrong shape) degrades to an empty
extraction; the returned :class:`ExtractionOutcome` records which one
happened.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from pydantic import ValidationError

from soulmap.ai.llm import complete as default_complete
from soulmap.ai.parsing import OK, PARSE_ERROR, SHAPE_ERROR, parse_json_object
from soulmap.ai.prompts import graph_extraction_prompt
from soulmap.graph.models import Extraction
from soulmap.logger import get_logger

logger = get_logger(__name__)

LLM_ERROR = "llm_error"


@dataclass
class ExtractionOutcome:
    status: str
    extraction: Extraction = field(default_factory=Extraction)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == OK


def decode_extraction(raw: str) -> ExtractionOutcome:
    """Decode a raw model reply into an :class:`Extraction`."""
    parsed = parse_json_object(raw)
    if not parsed.ok:
        return ExtractionOutcome(PARSE_ERROR, error=parsed.error)

    try:
        extraction = Extraction.model_validate(parsed.value)
    except ValidationError as exc:
        return ExtractionOutcome(SHAPE_ERROR, error=str(exc))
    return ExtractionOutcome(OK, extraction=extraction)


def extract_graph(
    text: str,
    complete: Optional[Callable[[str], str]] = None,
) -> ExtractionOutcome:
    """Run the extraction prompt over *text* and decode the reply.

    Args:
        text: Flattened journal entry.
        complete: Prompt → raw reply callable; defaults to
            :func:`soulmap.ai.llm.complete`.

    Returns:
        An :class:`ExtractionOutcome`.  Its ``extraction`` is empty unless
        ``status == "ok"``.  Never raises.
    """
    complete = complete or default_complete
    try:
        raw = complete(graph_extraction_prompt(text))
    except Exception as exc:  # noqa: BLE001
        logger.warning("graph extraction call failed", extra={"error": str(exc)})
        return ExtractionOutcome(LLM_ERROR, error=str(exc))

    outcome = decode_extraction(raw)
    if not outcome.ok:
        logger.warning(
            "graph extraction reply rejected",
            extra={"status": outcome.status, "error": outcome.error, "raw": raw},
        )
    return outcome


def extract(text: str, complete: Optional[Callable[[str], str]] = None) -> Extraction:
    """Shorthand for ``extract_graph(text).extraction``."""
    return extract_graph(text, complete=complete).extraction
