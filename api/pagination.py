"""
api/pagination.py -- page/limit query parameters and the list response shape.

Every list endpoint takes ?page=&limit= and answers with
    {success: true, data: [...], pagination: {currentPage, totalPages,
                                              totalItems, itemsPerPage}}
page is capped at core.database.MAX_PAGE. limit defaults to
Settings.default_page_size and is clamped to Settings.max_page_size so one
request cannot pull the whole collection.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any, Optional

from fastapi import Path, Query, Request

from core.config import Settings
from core.database import MAX_PAGE, MAX_ROW_ID, Page

# Path ids above SQLite's signed 64-bit INTEGER range can never match a row.
RowId = Annotated[int, Path(le=MAX_ROW_ID)]


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int


def page_params(
    request: Request,
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: Optional[int] = Query(default=None, ge=1),
) -> PageParams:
    settings: Settings = request.app.state.settings
    if limit is None:
        limit = settings.default_page_size
    return PageParams(page=page, limit=min(limit, settings.max_page_size))


def paginated(result: Page, serialize: Callable[[Any], dict]) -> dict:
    return {
        "success": True,
        "data": [serialize(item) for item in result.items],
        "pagination": result.pagination(),
    }
