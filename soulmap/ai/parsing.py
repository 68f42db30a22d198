"""Recovery of JSON objects from free-form model replies.

Models asked for "just the JSON" still wrap it in markdown fences or add a
sentence before or after.  :func:`parse_json_object` strips fences, isolates
the outermost ``{ ... }`` by brace matching, and decodes it strictly.  It
never raises: the outcome is a tagged :class:`ParseResult`.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

OK = "ok"
PARSE_ERROR = "parse_error"
SHAPE_ERROR = "shape_error"

_LEADING_FENCE = re.compile(r"^```[a-zA-Z]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")


@dataclass
class ParseResult:
    status: str
    value: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    raw: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OK


def strip_fences(raw: str) -> str:
    """Remove a leading ```` ```json ```` / ```` ``` ```` and a trailing ```` ``` ````."""
    text = raw.strip()
    text = _LEADING_FENCE.sub("", text)
    text = _TRAILING_FENCE.sub("", text)
    return text.strip()


def find_object_span(text: str) -> Optional[str]:
    """Return the substring from the first ``{`` to its matching ``}``.

    Braces inside JSON strings are ignored.  When the braces never balance
    (truncated reply), the span runs to the last ``}`` instead so the strict
    decode can report a precise error.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    end = text.rfind("}")
    return text[start:end + 1] if end > start else None


def parse_json_object(raw: Optional[str]) -> ParseResult:
    """Decode the JSON object embedded in *raw*.

    Returns:
        ``ParseResult(status="ok", value=...)`` on success, otherwise
        ``"parse_error"`` with the decoder message.  ``"shape_error"`` is set
        by callers that validate the decoded object further.
    """
    raw = raw or ""
    span = find_object_span(strip_fences(raw))
    if span is None:
        return ParseResult(PARSE_ERROR, error="No JSON object found in model reply", raw=raw)

    try:
        value = json.loads(span)
    except json.JSONDecodeError as exc:
        return ParseResult(PARSE_ERROR, error=f"Invalid JSON: {exc}", raw=raw)

    return ParseResult(OK, value=value, raw=raw)
