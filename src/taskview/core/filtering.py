"""Search, status and priority filters over task sequences."""

from dataclasses import dataclass
from datetime import date

from .tasks import EffectiveStatus, Priority, Task, resolve_status


@dataclass(frozen=True)
class FilterCriteria:
    """Filter settings. ``None`` / empty means match everything."""

    status: EffectiveStatus | None = None
    priority: Priority | None = None
    search_text: str = ""

    @property
    def is_empty(self) -> bool:
        return self.status is None and self.priority is None and not self.search_text.strip()


def matches_text(task: Task, search_text: str) -> bool:
    """Case-insensitive substring match on details or the display identifier."""
    query = search_text.strip().lower()
    if not query:
        return True
    return query in task.details.lower() or query in task.label.lower()


def apply_filters(
    tasks: list[Task],
    criteria: FilterCriteria,
    as_of: date | None = None,
) -> list[Task]:
    """
    Filter tasks by search text, effective status and priority.

    Order-preserving. The status filter compares against the resolved
    status, so Expired can be selected even though it is never stored.
    Pure function - no I/O.
    """
    as_of = as_of or date.today()
    return [
        t
        for t in tasks
        if matches_text(t, criteria.search_text)
        and (criteria.status is None or resolve_status(t, as_of) == criteria.status)
        and (criteria.priority is None or t.priority == criteria.priority)
    ]
