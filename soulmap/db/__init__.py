"""Database layer package.

Public re-exports so callers can write::

    from soulmap.db import get_connection, init_db, transaction
"""

from soulmap.db.connection import get_connection, transaction
from soulmap.db.migrations import init_db

__all__ = ["get_connection", "init_db", "transaction"]
