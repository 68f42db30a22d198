"""FastAPI application factory.

Lifespan
--------
On startup the app initialises the schema of the configured database.  No
connection is kept open: each request opens its own through
:func:`soulmap.api.deps.get_db` and closes it when the response is sent.

Routers
-------
    /finish, /journal-entries   Journal entry flow and CRUD
    /nodes, /edges, /top-nodes, /soul-map
                                Graph listings and aggregate views
    /search                     Semantic search + reflection over entries
    /chat, /explore             Companion conversation and journal exploration
"""

from __future__ import annotations

import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from soulmap.api.routers import chat as chat_router
from soulmap.api.routers import graph as graph_router
from soulmap.api.routers import journal as journal_router
from soulmap.api.routers import search as search_router
from soulmap.config import settings
from soulmap.db import get_connection, init_db
from soulmap.errors import EntryNotFoundError, InvalidRequestError
from soulmap.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create tables on startup."""
    conn = get_connection(app.state.db_path)
    try:
        init_db(conn)
    finally:
        conn.close()
    logger.info("database ready", extra={"db_path": str(app.state.db_path)})
    yield


def create_app(db_path: Optional[Path] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance.

    Args:
        db_path: SQLite file to serve.  Defaults to ``settings.db_path``.
    """
    app = FastAPI(
        title="SoulMap API",
        description=(
            "REST interface for the SoulMap journaling backend. "
            "Saves finished journaling conversations, builds a personal "
            "knowledge graph from them and exposes ranking, soul-map and "
            "semantic search views."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.db_path = db_path or settings.db_path

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidRequestError)
    async def _invalid_request(request: Request, exc: InvalidRequestError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.exception_handler(EntryNotFoundError)
    async def _not_found(request: Request, exc: EntryNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"success": False, "error": str(exc)})

    @app.exception_handler(sqlite3.Error)
    async def _store_error(request: Request, exc: sqlite3.Error) -> JSONResponse:
        logger.error(
            "database error",
            extra={"path": request.url.path, "error": str(exc)},
        )
        return JSONResponse(status_code=500, content={"success": False, "error": "Database error"})

    app.include_router(journal_router.router, tags=["journal"])
    app.include_router(graph_router.router, tags=["graph"])
    app.include_router(search_router.router, prefix="/search", tags=["search"])
    app.include_router(chat_router.router, tags=["chat"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn soulmap.api.app:app --reload
app = create_app()
