"""
In-memory pagination over an already ordered listing.

The whole collection is read and sliced on every request; there is no
cursor or secondary index. Pages past the end are empty, never an error.
"""

from typing import Sequence, TypeVar

from todo_api.models.domain.response import Page
from todo_api.utils.helpers import parse_positive_int

T = TypeVar('T')

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def paginate(items: Sequence[T], page: int | str | None = None, limit: int | str | None = None) -> Page[T]:
    """
    Slice ``items`` into one page and wrap it with its metadata.

    ``page`` and ``limit`` that are missing, non-numeric, zero or negative
    are replaced by DEFAULT_PAGE and DEFAULT_LIMIT respectively.
    """
    page = parse_positive_int(page, DEFAULT_PAGE)
    limit = parse_positive_int(limit, DEFAULT_LIMIT)

    total_items = len(items)
    start = (page - 1) * limit
    if start >= total_items:
        page_items = []
    else:
        page_items = list(items[start:min(start + limit, total_items)])

    return Page(items=page_items, page=page, limit=limit, totalItems=total_items)
