"""Commands for saving, listing and searching journal entries."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from soulmap.ai.embedder import embed_text
from soulmap.ai.llm import complete
from soulmap.ai.summaries import summarize_entry
from soulmap.db import get_connection, init_db
from soulmap.db.entries import list_entries
from soulmap.errors import InvalidRequestError
from soulmap.graph.extractor import extract_graph
from soulmap.journal.finish import finish_entry
from soulmap.journal.reflect import reflect

entry_app = typer.Typer(help="Save, list and search journal entries.", no_args_is_help=True)


@entry_app.command("finish")
def entry_finish(
    text: Optional[str] = typer.Option(None, "--text", help="Entry text."),
    file: Optional[Path] = typer.Option(None, "--file", help="Read the entry text from a file."),
    user: Optional[str] = typer.Option(None, "--user", help="Owner id (defaults to the configured user)."),
) -> None:
    """Save a single-message entry, then extract and merge its graph."""
    if file is not None:
        text = file.read_text(encoding="utf-8")
    if not text:
        typer.echo("[entry finish] Provide --text or --file.")
        raise typer.Exit(1)

    conn = get_connection()
    try:
        init_db(conn)
        result = finish_entry(
            conn,
            [{"role": "user", "content": text}],
            user_id=user,
            embed=embed_text,
            summarize=summarize_entry,
            extract=extract_graph,
        )
    except InvalidRequestError as exc:
        typer.echo(f"[entry finish] {exc}")
        raise typer.Exit(1)
    finally:
        conn.close()

    typer.echo(f"[entry finish] Saved entry {result.entry_id}")
    graph = result.graph_enriched
    if graph.ok and graph.report is not None:
        r = graph.report
        typer.echo(
            f"[entry finish] Graph: {r.nodes_created} new / {r.nodes_reused} known nodes, "
            f"{r.edges_created} new / {r.edges_updated} updated edges"
        )
    else:
        typer.echo(f"[entry finish] Graph not updated: {graph.error or graph.status}")


@entry_app.command("list")
def entry_list(
    limit: int = typer.Option(20, help="Page size."),
    offset: int = typer.Option(0, help="Rows to skip."),
    user: Optional[str] = typer.Option(None, "--user", help="Filter by owner id."),
) -> None:
    """List journal entries, newest first."""
    conn = get_connection()
    try:
        init_db(conn)
        page = list_entries(conn, limit=limit, offset=offset, user_id=user)
    finally:
        conn.close()

    if not page.data:
        typer.echo("[entry list] No entries found.")
        return
    for e in page.data:
        title = e.title or e.content[:40]
        typer.echo(f"  {e.journal_entry_id}  {e.emoji or ' '} {title!r}")
    if page.pagination.has_more:
        typer.echo(f"  … {page.pagination.total} total, use --offset to see more")


@entry_app.command("search")
def entry_search(
    query: str = typer.Option(..., help="Question about past entries."),
    user: Optional[str] = typer.Option(None, "--user", help="Owner id."),
) -> None:
    """Find related entries and print an answer grounded on them."""
    conn = get_connection()
    try:
        init_db(conn)
        result = reflect(conn, query, user, embed=embed_text, complete=complete)
    finally:
        conn.close()

    typer.echo(result.response)
    for hit in result.related:
        typer.echo(f"  [{hit.similarity:.2f}] {hit.entry.journal_entry_id}  {hit.entry.title or ''}")
