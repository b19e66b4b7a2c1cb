"""Shared response envelopes."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageResponse(BaseModel, Generic[T]):
    """A page of items with the total number of pages."""

    items: list[T]
    total_pages: int
    page: int
