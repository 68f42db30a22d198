"""Commands for inspecting the knowledge graph."""

from __future__ import annotations

from typing import Optional

import typer

from soulmap.config import settings
from soulmap.db import get_connection, init_db
from soulmap.db.nodes import list_nodes_page
from soulmap.graph.queries import soul_map, top_nodes

from cli.rendering import render_soul_map, render_top_nodes

graph_app = typer.Typer(help="Inspect the knowledge graph.", no_args_is_help=True)


@graph_app.command("nodes")
def graph_nodes(
    limit: int = typer.Option(50, help="Page size."),
    offset: int = typer.Option(0, help="Rows to skip."),
    user: Optional[str] = typer.Option(None, "--user", help="Filter by owner id."),
) -> None:
    """List graph nodes, newest first."""
    conn = get_connection()
    try:
        init_db(conn)
        page = list_nodes_page(conn, limit=limit, offset=offset, user_id=user)
    finally:
        conn.close()

    if not page.data:
        typer.echo("[graph nodes] No nodes found.")
        return
    for n in page.data:
        typer.echo(f"  {n.node_id}  [{n.type}]  {n.label!r}")


@graph_app.command("top")
def graph_top(
    limit: int = typer.Option(5, help="Number of nodes."),
    related_to: Optional[str] = typer.Option(None, "--related-to", help="Rank neighbours of this node id."),
    user: Optional[str] = typer.Option(None, "--user", help="Filter by owner id."),
) -> None:
    """Show the most connected nodes."""
    conn = get_connection()
    try:
        init_db(conn)
        ranked = top_nodes(conn, limit=limit, user_id=user, related_to=related_to)
    finally:
        conn.close()

    if not ranked:
        typer.echo("[graph top] No nodes found.")
        return
    typer.echo(render_top_nodes(ranked, relative=related_to is not None))


@graph_app.command("soul-map")
def graph_soul_map(
    user: Optional[str] = typer.Option(None, "--user", help="Owner id (defaults to the configured user)."),
) -> None:
    """Print a user's soul map as a list of weighted connections."""
    conn = get_connection()
    try:
        init_db(conn)
        result = soul_map(conn, user or settings.default_user_id)
    finally:
        conn.close()

    typer.echo(render_soul_map(result))
