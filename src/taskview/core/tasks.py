"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum

from taskview.errors import ValidationError


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def weight(self) -> int:
        """Numeric weight used for sorting (High=3, Medium=2, Low=1)."""
        return {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}[self]


class TaskStatus(str, Enum):
    """Stored (intended) status of a task."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @classmethod
    def parse(cls, value: "str | TaskStatus") -> "TaskStatus":
        if isinstance(value, TaskStatus):
            return value
        if value == "InProgress":
            return cls.IN_PROGRESS
        return cls(value)


class EffectiveStatus(str, Enum):
    """Status as displayed and filtered. EXPIRED is derived, never stored."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    EXPIRED = "Expired"

    @classmethod
    def parse(cls, value: "str | EffectiveStatus") -> "EffectiveStatus":
        if isinstance(value, EffectiveStatus):
            return value
        if value == "InProgress":
            return cls.IN_PROGRESS
        return cls(value)


# Stored statuses that require a start date.
STARTED_STATUSES = (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED)

PATCHABLE_FIELDS = ("priority", "status", "deadline", "start_time", "hours", "details")


def parse_date(value) -> date | None:
    """Normalize a date-ish value to a calendar date.

    Accepts dates, datetimes and ISO strings; timestamps like
    ``2025-01-15T00:00:00.000Z`` are cut to their date part.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).split("T")[0])


@dataclass(frozen=True)
class Task:
    """A task as held in the cache."""

    id: str
    priority: Priority
    status: TaskStatus
    deadline: date | None
    hours: int
    details: str
    created_at: datetime
    start_time: date | None = None
    display_id: str = ""

    @property
    def label(self) -> str:
        """Identifier shown to the user."""
        return self.display_id or self.id

    def days_until_due(self, as_of: date | None = None) -> int | None:
        """Days until deadline (negative if past)."""
        if not self.deadline:
            return None
        as_of = as_of or date.today()
        return (self.deadline - as_of).days


@dataclass(frozen=True)
class TaskDraft:
    """Unvalidated input for a new task."""

    details: str = ""
    deadline: date | None = None
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    hours: int = 1
    start_time: date | None = None


def resolve_status(task: Task, as_of: date | None = None) -> EffectiveStatus:
    """
    Effective status of a task.

    Completed stays Completed. Anything else whose deadline lies strictly
    before ``as_of`` is Expired. A deadline of today is not expired.
    """
    if task.status == TaskStatus.COMPLETED:
        return EffectiveStatus.COMPLETED
    as_of = as_of or date.today()
    if task.deadline and task.deadline < as_of:
        return EffectiveStatus.EXPIRED
    return EffectiveStatus(task.status.value)


def is_inactive(task: Task, as_of: date | None = None) -> bool:
    """Completed or Expired tasks are inactive."""
    return resolve_status(task, as_of) in (EffectiveStatus.COMPLETED, EffectiveStatus.EXPIRED)


def count_due_today(tasks: list[Task], as_of: date | None = None) -> int:
    """Number of active tasks whose deadline is today."""
    as_of = as_of or date.today()
    return sum(1 for t in tasks if t.deadline == as_of and not is_inactive(t, as_of))


def validate_fields(
    details: str,
    deadline: date | None,
    start_time: date | None,
    status: TaskStatus,
    hours: int,
) -> None:
    """Check required and contradictory fields. Raises ValidationError."""
    if not details or not details.strip():
        raise ValidationError("details", "Please provide a description for the task.")
    if deadline is None:
        raise ValidationError("deadline", "A deadline is required.")
    if status in STARTED_STATUSES and start_time is None:
        raise ValidationError(
            "start_time", "Start date is required for tasks that are In Progress or Completed."
        )
    if start_time and start_time > deadline:
        raise ValidationError("start_time", "Due date must be after the start date.")
    if isinstance(hours, bool) or not isinstance(hours, int) or hours < 1:
        raise ValidationError("hours", "Hours must be a positive whole number.")


def validate_draft(draft: TaskDraft, as_of: date | None = None) -> None:
    """Validate a new task. New tasks may not be due in the past."""
    validate_fields(draft.details, draft.deadline, draft.start_time, draft.status, draft.hours)
    as_of = as_of or date.today()
    if draft.deadline < as_of:
        raise ValidationError("deadline", "The deadline of a new task cannot be in the past.")


def _whole_hours(value) -> int:
    # bools are ints; 2.5 hours is not a whole number
    if isinstance(value, bool):
        raise TypeError(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(value)
        return int(value)
    if isinstance(value, (int, str)):
        return int(value)
    raise TypeError(value)


def coerce_patch(patch: dict) -> dict:
    """
    Convert raw patch values to model types.

    Raises ValidationError for unknown or immutable fields and for values
    that cannot be interpreted.
    """
    coerced = {}
    for key, value in patch.items():
        if key not in PATCHABLE_FIELDS:
            raise ValidationError(key, f"Field '{key}' cannot be changed.")
        try:
            match key:
                case "priority":
                    coerced[key] = Priority(value)
                case "status":
                    coerced[key] = TaskStatus.parse(value)
                case "deadline" | "start_time":
                    coerced[key] = parse_date(value)
                case "hours":
                    coerced[key] = _whole_hours(value)
                case "details":
                    if not isinstance(value, str):
                        raise TypeError(value)
                    coerced[key] = value.strip()
        except (TypeError, ValueError) as e:
            raise ValidationError(key, f"Invalid value for '{key}': {value!r}") from e
    return coerced


def apply_patch(task: Task, patch: dict) -> Task:
    """Return a copy of ``task`` with ``patch`` applied, validated as a whole."""
    changes = coerce_patch(patch)
    patched = replace(task, **changes)
    validate_fields(
        patched.details, patched.deadline, patched.start_time, patched.status, patched.hours
    )
    return patched


def task_from_draft(draft: TaskDraft, task_id: str, created_at: datetime) -> Task:
    """Build a (provisional) Task from a validated draft."""
    return Task(
        id=task_id,
        priority=draft.priority,
        status=draft.status,
        deadline=draft.deadline,
        start_time=draft.start_time,
        hours=draft.hours,
        details=draft.details.strip(),
        created_at=created_at,
    )
