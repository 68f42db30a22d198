"""Tests for graph extraction and summary generation.

The language model is replaced by plain callables returning canned replies;
no network calls are made.
"""

from __future__ import annotations

from soulmap.ai.parsing import OK, PARSE_ERROR, SHAPE_ERROR
from soulmap.ai.summaries import summarize_entry
from soulmap.graph.extractor import LLM_ERROR, decode_extraction, extract, extract_graph
from soulmap.graph.models import Extraction, ProposedEdge

GOOD_REPLY = """```json
{
  "nodes": [
    {"label": " Mom ", "type": "Person"},
    {"label": "Anxiety", "type": "emotion"}
  ],
  "edges": [
    {"from": "Mom", "to": "Anxiety", "weight": -0.8}
  ]
}
```"""


def _reply(text: str):
    return lambda prompt: text


def _boom(prompt: str) -> str:
    raise ConnectionError("model offline")


class TestDecodeExtraction:
    def test_valid_reply(self) -> None:
        outcome = decode_extraction(GOOD_REPLY)
        assert outcome.status == OK
        assert [(n.label, n.type) for n in outcome.extraction.nodes] == [
            ("Mom", "person"),
            ("Anxiety", "emotion"),
        ]
        edge = outcome.extraction.edges[0]
        assert (edge.from_, edge.to, edge.weight) == ("Mom", "Anxiety", -0.8)

    def test_missing_keys_default_to_empty(self) -> None:
        outcome = decode_extraction('{"nodes": null}')
        assert outcome.ok
        assert outcome.extraction.is_empty

    def test_wrong_shape(self) -> None:
        outcome = decode_extraction('{"nodes": "Mom, Anxiety", "edges": []}')
        assert outcome.status == SHAPE_ERROR
        assert outcome.extraction.is_empty

    def test_blank_label_rejected(self) -> None:
        outcome = decode_extraction('{"nodes": [{"label": "  ", "type": "theme"}]}')
        assert outcome.status == SHAPE_ERROR

    def test_unparseable(self) -> None:
        outcome = decode_extraction("I could not find anything meaningful.")
        assert outcome.status == PARSE_ERROR

    def test_weight_clamped(self) -> None:
        edge = ProposedEdge.model_validate({"from": "a", "to": "b", "weight": 3.5})
        assert edge.weight == 1.0
        edge = ProposedEdge.model_validate({"from": "a", "to": "b", "weight": -7})
        assert edge.weight == -1.0


class TestExtractGraph:
    def test_uses_model_reply(self) -> None:
        outcome = extract_graph("My mom called.", complete=_reply(GOOD_REPLY))
        assert outcome.ok
        assert len(outcome.extraction.nodes) == 2

    def test_prompt_contains_entry_text(self) -> None:
        seen: list[str] = []

        def capture(prompt: str) -> str:
            seen.append(prompt)
            return "{}"

        extract_graph("Walked by the lake.", complete=capture)
        assert "Walked by the lake." in seen[0]

    def test_model_error_degrades_to_empty(self) -> None:
        outcome = extract_graph("text", complete=_boom)
        assert outcome.status == LLM_ERROR
        assert "model offline" in (outcome.error or "")
        assert outcome.extraction.is_empty

    def test_extract_shorthand(self) -> None:
        assert extract("text", complete=_reply("nonsense")) == Extraction()


class TestSummarizeEntry:
    def test_parses_fields(self) -> None:
        reply = (
            '{"title": "Burnout Cycle", "emoji": "😮‍💨", "userSummary": "Tired.",'
            ' "aiSummary": "Pattern.", "tags": ["Work", " Guilt ", 3, ""]}'
        )
        s = summarize_entry("text", complete=_reply(reply))
        assert s.title == "Burnout Cycle"
        assert s.emoji == "😮‍💨"
        assert s.user_summary == "Tired."
        assert s.ai_summary == "Pattern."
        assert s.tags == ["Work", "Guilt"]

    def test_model_error_gives_empty_summaries(self) -> None:
        s = summarize_entry("text", complete=_boom)
        assert s.title is None
        assert s.tags == []

    def test_unparseable_reply_gives_empty_summaries(self) -> None:
        s = summarize_entry("text", complete=_reply("no json"))
        assert s.title is None
