"""Tests for the SoulMap CLI."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from cli.main import app
from soulmap.ai.parsing import OK
from soulmap.config import settings
from soulmap.db import get_connection, init_db
from soulmap.db.models import Summaries
from soulmap.graph.extractor import ExtractionOutcome
from soulmap.graph.models import Extraction

runner = CliRunner()

FAKE_EMBEDDING = [0.1] * settings.embedding_dim

EXTRACTION = Extraction.model_validate(
    {
        "nodes": [{"label": "Sam", "type": "person"}, {"label": "Calm", "type": "emotion"}],
        "edges": [{"from": "Sam", "to": "Calm", "weight": 0.6}],
    }
)


@pytest.fixture
def clean_db(tmp_path, monkeypatch):
    """Point the workspace at a fresh temporary directory."""
    monkeypatch.setattr("soulmap.config.settings.workspace_dir", tmp_path)
    return tmp_path


@pytest.fixture
def ai_mocks():
    with patch("cli.commands.entry.embed_text", return_value=FAKE_EMBEDDING), \
         patch("cli.commands.entry.summarize_entry", return_value=Summaries(title="Walk")), \
         patch("cli.commands.entry.extract_graph",
               return_value=ExtractionOutcome(OK, extraction=EXTRACTION)) as extract:
        yield extract


def test_db_init(clean_db):
    result = runner.invoke(app, ["db", "init"])
    assert result.exit_code == 0
    assert "Database ready" in result.stdout
    assert (clean_db / "journal.db").exists()


def test_entry_finish_text(clean_db, ai_mocks):
    result = runner.invoke(app, ["entry", "finish", "--text", "Walked with Sam."])
    assert result.exit_code == 0, result.stdout
    assert "Saved entry" in result.stdout
    assert "2 new / 0 known nodes" in result.stdout

    conn = get_connection()
    init_db(conn)
    row = conn.execute("SELECT content, user_id FROM journal_entries").fetchone()
    conn.close()
    assert row["content"] == "Walked with Sam."
    assert row["user_id"] == settings.default_user_id


def test_entry_finish_file(clean_db, ai_mocks, tmp_path):
    note = tmp_path / "note.txt"
    note.write_text("From a file.", encoding="utf-8")
    result = runner.invoke(app, ["entry", "finish", "--file", str(note), "--user", "u-9"])
    assert result.exit_code == 0, result.stdout

    result = runner.invoke(app, ["entry", "list", "--user", "u-9"])
    assert "Walk" in result.stdout


def test_entry_finish_graph_failure_reported(clean_db, ai_mocks):
    ai_mocks.side_effect = RuntimeError("extractor down")
    result = runner.invoke(app, ["entry", "finish", "--text", "x"])
    assert result.exit_code == 0
    assert "Saved entry" in result.stdout
    assert "Graph not updated: extractor down" in result.stdout


def test_entry_finish_requires_text(clean_db):
    result = runner.invoke(app, ["entry", "finish"])
    assert result.exit_code == 1
    assert "Provide --text or --file" in result.stdout


def test_entry_list_empty(clean_db):
    result = runner.invoke(app, ["entry", "list"])
    assert result.exit_code == 0
    assert "No entries found" in result.stdout


def test_graph_commands(clean_db, ai_mocks):
    runner.invoke(app, ["entry", "finish", "--text", "Walked with Sam."])

    nodes = runner.invoke(app, ["graph", "nodes"])
    assert "'Sam'" in nodes.stdout
    assert "'Calm'" in nodes.stdout

    top = runner.invoke(app, ["graph", "top", "--limit", "1"])
    assert top.exit_code == 0
    assert "Calm" in top.stdout or "Sam" in top.stdout

    soul = runner.invoke(app, ["graph", "soul-map"])
    assert soul.exit_code == 0
    assert "2 nodes, 1 connections" in soul.stdout
    assert "Sam ──(+0.60)──▶ Calm" in soul.stdout


def test_graph_top_related(clean_db, ai_mocks):
    runner.invoke(app, ["entry", "finish", "--text", "Walked with Sam."])
    conn = get_connection()
    sam = conn.execute("SELECT node_id FROM nodes WHERE label = 'Sam'").fetchone()["node_id"]
    conn.close()

    result = runner.invoke(app, ["graph", "top", "--related-to", sam])
    assert result.exit_code == 0
    assert "Calm" in result.stdout
    assert "← +0.60" in result.stdout


def test_graph_soul_map_empty(clean_db):
    result = runner.invoke(app, ["graph", "soul-map"])
    assert "Soul map is empty." in result.stdout


def test_entry_search(clean_db, ai_mocks):
    runner.invoke(app, ["entry", "finish", "--text", "Walked with Sam."])
    with patch("cli.commands.entry.complete", return_value="You walked with Sam."):
        result = runner.invoke(app, ["entry", "search", "--query", "Who did I walk with?"])
    assert result.exit_code == 0
    assert "You walked with Sam." in result.stdout


@pytest.mark.parametrize(
    "module, args",
    [
        ("cli.commands.graph", ["graph", "nodes"]),
        ("cli.commands.graph", ["graph", "top"]),
        ("cli.commands.graph", ["graph", "soul-map"]),
        ("cli.commands.entry", ["entry", "list"]),
        ("cli.commands.entry", ["entry", "finish", "--text", "x"]),
    ],
)
def test_connection_closed_when_schema_init_fails(clean_db, module, args):
    conn = MagicMock()
    with patch(f"{module}.get_connection", return_value=conn), \
         patch(f"{module}.init_db", side_effect=sqlite3.OperationalError("disk I/O error")):
        result = runner.invoke(app, args)
    assert result.exit_code != 0
    assert isinstance(result.exception, sqlite3.OperationalError)
    conn.close.assert_called_once()
