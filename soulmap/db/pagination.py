"""Offset/limit helpers shared by the paginated listings."""

from __future__ import annotations

from soulmap.config import settings
from soulmap.db.models import Pagination


def clamp(limit: int, offset: int) -> tuple[int, int]:
    """Bound *limit* to ``[1, settings.max_page_size]`` and *offset* to ``>= 0``."""
    limit = max(1, min(int(limit), settings.max_page_size))
    offset = max(0, int(offset))
    return limit, offset


def paginate(total: int, limit: int, offset: int) -> Pagination:
    return Pagination(total=total, limit=limit, offset=offset)
