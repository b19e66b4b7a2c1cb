"""Offset pagination for ORM list queries."""

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from sqlalchemy.orm import Query

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results plus the total page count."""

    items: list[T] = field(default_factory=list)
    total_pages: int = 0
    page: int = 1


def page_window(page: int, size: int) -> tuple[int, int]:
    """Return ``(offset, limit)`` for a 1-indexed page; page <= 1 is page 1."""
    if page <= 1:
        return 0, size
    return (page - 1) * size, size


def paginate(query: Query, page: int, size: int) -> Page:
    """Apply a page window to ``query`` and count the total pages.

    The query must already carry its ordering. An empty result set has
    zero pages.
    """
    total = query.order_by(None).count()
    current = max(page, 1)
    if total == 0:
        return Page(items=[], total_pages=0, page=current)

    offset, limit = page_window(page, size)
    items = query.offset(offset).limit(limit).all()
    return Page(items=items, total_pages=math.ceil(total / size), page=current)
