"""Task ordering with the inactive-last partition."""

from dataclasses import dataclass
from datetime import date
from enum import Enum

from .tasks import Task, is_inactive, resolve_status


class SortField(str, Enum):
    PRIORITY = "priority"
    DEADLINE = "deadline"
    START_TIME = "start_time"
    HOURS = "hours"
    STATUS = "status"
    ID = "id"
    CREATED_AT = "created_at"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self == SortDirection.ASC else SortDirection.ASC


# Fields whose value may be missing; missing values always go last.
DATE_FIELDS = (SortField.DEADLINE, SortField.START_TIME, SortField.CREATED_AT)


@dataclass(frozen=True)
class SortSpec:
    field: SortField = SortField.ID
    direction: SortDirection = SortDirection.DESC


def toggle_sort(spec: SortSpec, field: SortField) -> SortSpec:
    """
    Next sort spec after the user picks ``field``.

    Picking the current field flips the direction; a new field starts
    ascending. Two states only.
    """
    if spec.field == field:
        return SortSpec(field, spec.direction.flipped())
    return SortSpec(field, SortDirection.ASC)


def _sort_key(task: Task, field: SortField, as_of: date):
    match field:
        case SortField.PRIORITY:
            return task.priority.weight
        case SortField.HOURS:
            return task.hours
        case SortField.STATUS:
            return resolve_status(task, as_of).value
        case SortField.ID:
            return task.id
        case SortField.DEADLINE:
            return task.deadline
        case SortField.START_TIME:
            return task.start_time
        case SortField.CREATED_AT:
            return task.created_at


def _sort_partition(tasks: list[Task], spec: SortSpec, as_of: date) -> list[Task]:
    keyed = [(_sort_key(t, spec.field, as_of), t) for t in tasks]
    present = [(k, t) for k, t in keyed if k is not None]
    missing = [t for k, t in keyed if k is None]
    # sorted() stays stable with reverse=True
    ordered = sorted(
        present,
        key=lambda pair: pair[0],
        reverse=spec.direction == SortDirection.DESC,
    )
    return [t for _, t in ordered] + missing


def sort_tasks(
    tasks: list[Task],
    spec: SortSpec,
    as_of: date | None = None,
) -> list[Task]:
    """
    Sort tasks: active first, then inactive (Completed or Expired).

    Within each group the chosen field and direction apply. Tasks with a
    missing date sort last in their group regardless of direction. Equal
    keys keep their input order.
    Pure function - no I/O.
    """
    as_of = as_of or date.today()
    active = [t for t in tasks if not is_inactive(t, as_of)]
    inactive = [t for t in tasks if is_inactive(t, as_of)]
    return _sort_partition(active, spec, as_of) + _sort_partition(inactive, spec, as_of)
