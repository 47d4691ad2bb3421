"""
Pagination model for list endpoints.

Mirrors the backend's page envelope: {data, page, limit, totalPages, totalItems}.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence


@dataclass
class Page:
    """One page of a paginated collection."""

    items: list = field(default_factory=list)
    page: int = 1
    limit: int = 25
    total_pages: int = 1
    total_items: int = 0

    @classmethod
    def from_response(
        cls,
        data: dict,
        item_factory: Optional[Callable] = None,
        limit: int = 25,
    ) -> "Page":
        """
        Parse a page envelope, falling back to an empty first page for any
        missing or malformed field.
        """
        raw_items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(raw_items, list):
            raw_items = []
        items = [item_factory(i) for i in raw_items] if item_factory else raw_items
        return cls(
            items=items,
            page=data.get("page") or 1,
            limit=data.get("limit") or limit,
            total_pages=data.get("totalPages") or 1,
            total_items=data.get("totalItems") or 0,
        )

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def paginate(items: Sequence, page: int, limit: int) -> Page:
    """
    Slice a local collection with the same contract as the list endpoint.

    Page numbers start at 1; an empty collection still has one page.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")
    total_items = len(items)
    total_pages = max(1, math.ceil(total_items / limit))
    start = (max(page, 1) - 1) * limit
    page_items: List = list(items[start:start + limit])
    return Page(
        items=page_items,
        page=page,
        limit=limit,
        total_pages=total_pages,
        total_items=total_items,
    )
