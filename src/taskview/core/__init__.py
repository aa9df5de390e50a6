"""Functional core - pure task view logic with no I/O."""

from .tasks import (
    EffectiveStatus,
    Priority,
    Task,
    TaskDraft,
    TaskStatus,
    count_due_today,
    resolve_status,
)
from .filtering import FilterCriteria, apply_filters
from .sorting import SortDirection, SortField, SortSpec, sort_tasks, toggle_sort
from .pagination import Page, page_window, paginate
from .calendar import CalendarIndex, build_index, month_grid

__all__ = [
    # Tasks
    "Task",
    "TaskDraft",
    "Priority",
    "TaskStatus",
    "EffectiveStatus",
    "resolve_status",
    "count_due_today",
    # Filtering
    "FilterCriteria",
    "apply_filters",
    # Sorting
    "SortField",
    "SortDirection",
    "SortSpec",
    "sort_tasks",
    "toggle_sort",
    # Pagination
    "Page",
    "paginate",
    "page_window",
    # Calendar
    "CalendarIndex",
    "build_index",
    "month_grid",
]
