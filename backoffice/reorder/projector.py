"""
View Projector

Derives the filtered, then paginated, subsequence shown to the operator.
Projection is a pure read path: it never touches an item's position, and
moves triggered from a projected page are addressed by id so they resolve
against the global Working Order.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from backoffice.reorder.store import OrderedItem

DEFAULT_SEARCH_FIELDS = ("title", "category")


@dataclass(frozen=True)
class Page:
    """One page of a projected Working Order"""

    items: List[OrderedItem]
    page_index: int
    page_size: int
    page_count: int
    filtered_count: int
    total_count: int

    def serialize(self) -> dict:
        return {
            "items": [item.serialize() for item in self.items],
            "page": self.page_index,
            "size": self.page_size,
            "total_pages": self.page_count,
            "filtered_elements": self.filtered_count,
            "total_elements": self.total_count,
        }


def matches(item: OrderedItem, query_text: str, fields: Sequence[str]) -> bool:
    """Case-insensitive substring match over the given display fields"""
    needle = query_text.strip().lower()
    if not needle:
        return True
    for name in fields:
        value = item.fields.get(name)
        if value is not None and needle in str(value).lower():
            return True
    return False


def filter_items(
    working_order: Sequence[OrderedItem],
    query_text: Optional[str],
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> List[OrderedItem]:
    """Returns the items matching the query, in Working Order sequence"""
    if not query_text or not query_text.strip():
        return list(working_order)
    return [item for item in working_order if matches(item, query_text, fields)]


def page_count(filtered_count: int, page_size: int) -> int:
    return math.ceil(filtered_count / page_size)


def clamp_page(page_index: int, filtered_count: int, page_size: int) -> int:
    """Clamps a 1-based page index to [1, ceil(filtered_count / page_size)]"""
    last = max(page_count(filtered_count, page_size), 1)
    return min(max(page_index, 1), last)


def project(
    working_order: Sequence[OrderedItem],
    query_text: Optional[str],
    page_index: int,
    page_size: int,
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> Page:
    """Filters the Working Order, then slices out one page of the result"""
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    filtered = filter_items(working_order, query_text, fields)
    current = clamp_page(page_index, len(filtered), page_size)
    start = (current - 1) * page_size
    return Page(
        items=filtered[start:start + page_size],
        page_index=current,
        page_size=page_size,
        page_count=page_count(len(filtered), page_size),
        filtered_count=len(filtered),
        total_count=len(working_order),
    )
