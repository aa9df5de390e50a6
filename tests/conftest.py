"""Shared fixtures."""

from datetime import date, datetime, timezone

import pytest

from taskview.core.tasks import Priority, Task, TaskStatus


@pytest.fixture
def today():
    return date(2025, 1, 15)


@pytest.fixture
def make_task(today):
    """Factory for creating tasks with sensible defaults."""
    def _make(
        id: str,
        priority: Priority = Priority.MEDIUM,
        status: TaskStatus = TaskStatus.PENDING,
        deadline: date | None = None,
        start_time: date | None = None,
        hours: int = 1,
        details: str = "",
        created_at: datetime | None = None,
        display_id: str = "",
    ) -> Task:
        return Task(
            id=id,
            priority=priority,
            status=status,
            deadline=deadline if deadline is not None else today,
            start_time=start_time,
            hours=hours,
            details=details or f"Task {id}",
            created_at=created_at or datetime(2025, 1, 1, tzinfo=timezone.utc),
            display_id=display_id,
        )
    return _make
