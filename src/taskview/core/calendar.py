"""Pure calendar grouping of tasks by deadline - no I/O dependencies."""

import calendar
from dataclasses import dataclass, field
from datetime import date

from .filtering import FilterCriteria, apply_filters
from .sorting import SortSpec, sort_tasks
from .tasks import Task, parse_date


def date_key(day: date) -> str:
    return day.isoformat()


def build_index(tasks: list[Task]) -> dict[str, list[str]]:
    """
    Group task ids by deadline date (YYYY-MM-DD).

    Ids keep the order of ``tasks`` within each date. Tasks without a
    deadline are left out.
    """
    index: dict[str, list[str]] = {}
    for t in tasks:
        if t.deadline:
            index.setdefault(date_key(t.deadline), []).append(t.id)
    return index


@dataclass(frozen=True)
class CalendarIndex:
    """Deadline buckets plus the tasks they refer to. Rebuilt, never edited."""

    buckets: dict[str, list[str]] = field(default_factory=dict)
    tasks_by_id: dict[str, Task] = field(default_factory=dict)

    @classmethod
    def from_tasks(cls, tasks: list[Task]) -> "CalendarIndex":
        return cls(buckets=build_index(tasks), tasks_by_id={t.id: t for t in tasks})

    def task_ids(self, day: date | str) -> list[str]:
        return list(self.buckets.get(date_key(parse_date(day)), []))

    def tasks_on(self, day: date | str) -> list[Task]:
        """Tasks due on ``day`` in index order."""
        return [self.tasks_by_id[i] for i in self.task_ids(day)]

    def query(
        self,
        day: date | str,
        criteria: FilterCriteria | None = None,
        sort_spec: SortSpec | None = None,
        as_of: date | None = None,
    ) -> list[Task]:
        """Tasks due on ``day``, optionally filtered and sorted."""
        result = self.tasks_on(day)
        if criteria is not None:
            result = apply_filters(result, criteria, as_of)
        if sort_spec is not None:
            result = sort_tasks(result, sort_spec, as_of)
        return result

    def dates_in_month(self, year: int, month: int) -> dict[date, int]:
        """Deadline dates in the given month that have tasks, with counts."""
        prefix = f"{year:04d}-{month:02d}-"
        return {
            date.fromisoformat(key): len(ids)
            for key, ids in sorted(self.buckets.items())
            if key.startswith(prefix)
        }


def month_grid(year: int, month: int) -> list[list[date | None]]:
    """
    Weeks of a month for a calendar view, Sunday first.

    Cells outside the month are None.
    """
    cal = calendar.Calendar(firstweekday=calendar.SUNDAY)
    return [
        [day if day.month == month else None for day in week]
        for week in cal.monthdatescalendar(year, month)
    ]
