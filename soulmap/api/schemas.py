"""Response shapes shared by several routers."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from pydantic import BaseModel

from soulmap.db.models import Page

T = TypeVar("T")


class PaginationResponse(BaseModel):
    total: int
    limit: int
    offset: int
    hasMore: bool


def page_response(page: Page[T], render: Callable[[T], dict[str, Any]]) -> dict[str, Any]:
    """``{data, pagination}`` envelope of a paginated listing."""
    return {
        "data": [render(item) for item in page.data],
        "pagination": PaginationResponse(
            total=page.pagination.total,
            limit=page.pagination.limit,
            offset=page.pagination.offset,
            hasMore=page.pagination.has_more,
        ).model_dump(),
    }
