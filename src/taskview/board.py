"""View state over a TaskCache: filters, sort, current page, calendar."""

import logging
from dataclasses import replace
from datetime import date

from taskview.cache import CacheEvent, TaskCache
from taskview.core.calendar import CalendarIndex
from taskview.core.filtering import FilterCriteria, apply_filters
from taskview.core.pagination import DEFAULT_PAGE_SIZE, Page, paginate
from taskview.core.sorting import SortField, SortSpec, sort_tasks, toggle_sort
from taskview.core.tasks import EffectiveStatus, Priority, Task, count_due_today

logger = logging.getLogger(__name__)


class TaskBoard:
    """
    What the user is looking at.

    Holds the filter criteria, sort spec, current page and selected
    calendar date. Every read is recomputed from the cache; the calendar
    index is rebuilt whenever the cache reports a change.
    """

    def __init__(
        self,
        cache: TaskCache,
        page_size: int = DEFAULT_PAGE_SIZE,
        default_sort: SortSpec | None = None,
    ):
        self.cache = cache
        self.page_size = page_size
        self.default_sort = default_sort or SortSpec()
        self.criteria = FilterCriteria()
        self.sort_spec = self.default_sort
        self.page = 1
        self.selected_date: date | None = None
        self.calendar = CalendarIndex.from_tasks(cache.snapshot())
        self._unsubscribe = cache.subscribe(self._on_cache_change)

    def close(self) -> None:
        """Stop following the cache."""
        self._unsubscribe()

    def _on_cache_change(self, event: CacheEvent) -> None:
        self.calendar = CalendarIndex.from_tasks(self.cache.snapshot())
        logger.debug(f"Calendar rebuilt after {event.kind} of {len(event.task_ids)} task(s)")

    # ============== Controls ==============

    def search(self, text: str) -> None:
        self.criteria = replace(self.criteria, search_text=text)

    def filter_status(self, status: EffectiveStatus | str | None) -> None:
        if isinstance(status, str):
            status = EffectiveStatus.parse(status) if status and status != "any" else None
        self.criteria = replace(self.criteria, status=status)

    def filter_priority(self, priority: Priority | str | None) -> None:
        if isinstance(priority, str):
            priority = Priority(priority) if priority and priority != "any" else None
        self.criteria = replace(self.criteria, priority=priority)

    def sort_by(self, field: SortField | str) -> SortSpec:
        """Pick a sort column; picking it again flips the direction."""
        self.sort_spec = toggle_sort(self.sort_spec, SortField(field))
        return self.sort_spec

    def go_to_page(self, page: int, as_of: date | None = None) -> bool:
        """Move to ``page`` if it exists. Returns False and stays put otherwise."""
        total_pages = self.visible_page(as_of).total_pages
        if 1 <= page <= total_pages:
            self.page = page
            return True
        return False

    def select_date(self, day: date | None) -> None:
        self.selected_date = day

    def reset(self) -> None:
        """Clear search, filters, date selection and sorting."""
        self.criteria = FilterCriteria()
        self.sort_spec = self.default_sort
        self.selected_date = None
        self.page = 1

    # ============== Derived views ==============

    def filtered_and_sorted(self, as_of: date | None = None) -> list[Task]:
        """Filtered, sorted tasks, narrowed to the selected date if any."""
        if self.selected_date is not None:
            tasks = self.calendar.tasks_on(self.selected_date)
        else:
            tasks = self.cache.snapshot()
        return sort_tasks(apply_filters(tasks, self.criteria, as_of), self.sort_spec, as_of)

    def visible_page(self, as_of: date | None = None) -> Page:
        return paginate(self.filtered_and_sorted(as_of), self.page, self.page_size)

    def due_today_count(self, as_of: date | None = None) -> int:
        return count_due_today(self.cache.snapshot(), as_of)
