"""Fixed-size pagination of ordered task sequences."""

import math
from dataclasses import dataclass, field

from .tasks import Task

DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class Page:
    """One page of results plus the totals needed to render a pager."""

    page: int
    page_size: int
    total_items: int
    total_pages: int
    items: list[Task] = field(default_factory=list)

    @property
    def has_previous(self) -> bool:
        return 1 < self.page <= self.total_pages

    @property
    def has_next(self) -> bool:
        return 1 <= self.page < self.total_pages


def total_pages_for(total_items: int, page_size: int) -> int:
    """ceil(total / size); 0 when there is nothing to show."""
    if total_items <= 0:
        return 0
    return math.ceil(total_items / page_size)


def paginate(tasks: list[Task], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> Page:
    """
    Slice ``tasks`` into the requested 1-based page.

    A page outside [1, total_pages] yields no items instead of failing.
    The caller owns the current page number; nothing here adjusts it.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")

    total_items = len(tasks)
    total_pages = total_pages_for(total_items, page_size)
    items: list[Task] = []
    if 1 <= page <= total_pages:
        start = (page - 1) * page_size
        items = list(tasks[start : start + page_size])

    return Page(
        page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
        items=items,
    )


def page_window(page: int, total_pages: int, max_buttons: int = 5) -> list[int]:
    """
    Page numbers to offer in a pager, centred on ``page`` where possible.

    e.g. page 6 of 10 -> [4, 5, 6, 7, 8]; page 1 of 3 -> [1, 2, 3].
    """
    if total_pages <= 0:
        return []
    start = max(1, page - max_buttons // 2)
    end = min(total_pages, start + max_buttons - 1)
    start = max(1, end - max_buttons + 1)
    return list(range(start, end + 1))
