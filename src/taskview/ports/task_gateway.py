"""Remote task store interface."""

from dataclasses import dataclass
from typing import Protocol

from taskview.core.tasks import Task, TaskDraft


@dataclass(frozen=True)
class PaginationMeta:
    """Listing metadata reported by the remote store."""

    total: int = 0
    page: int = 1
    limit: int = 0
    pages: int = 0


class RemoteTaskGateway(Protocol):
    """Interface for persisting tasks in any remote backend.

    Failures are raised as ``taskview.errors.RemoteError``.
    """

    async def get_all(self) -> tuple[list[Task], PaginationMeta]:
        """Fetch every task."""
        ...

    async def create(self, draft: TaskDraft) -> Task:
        """Create a task. Returns the canonical task with its server id."""
        ...

    async def update(self, task_id: str, patch: dict) -> Task:
        """Apply a partial patch. Returns the canonical task."""
        ...

    async def delete(self, task_id: str) -> bool:
        """Delete a task. Returns True on success."""
        ...
