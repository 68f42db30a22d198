"""SoulMap CLI: entry-point for all backend operations.

Usage:
    python cli/main.py --help

Sub-command groups:
    db     → database setup
    entry  → save, list and search journal entries
    graph  → inspect the knowledge graph
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from soulmap.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import typer

from soulmap.config import settings
from soulmap.db import get_connection, init_db
from soulmap.db.migrations import current_version

from cli.commands.entry import entry_app
from cli.commands.graph import graph_app

app = typer.Typer(
    name="soulmap",
    help="SoulMap backend CLI.",
    no_args_is_help=True,
)

# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")
app.add_typer(entry_app, name="entry")
app.add_typer(graph_app, name="graph")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    try:
        init_db(conn)
        version = current_version(conn)
    finally:
        conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path} (schema v{version})")


# ---------------------------------------------------------------------------
# API server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("soulmap.api.app:app", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
