"""Shared FastAPI dependencies."""

from __future__ import annotations

import sqlite3
from typing import Iterator

from fastapi import Request

from soulmap.db import get_connection


def get_db(request: Request) -> Iterator[sqlite3.Connection]:
    """Yield a connection for the duration of one request."""
    conn = get_connection(request.app.state.db_path)
    try:
        yield conn
    finally:
        conn.close()
