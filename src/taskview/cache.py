"""In-memory canonical task set with change notifications."""

import logging
from dataclasses import dataclass
from typing import Callable

from taskview.core.tasks import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEvent:
    """A change to the cache: ``kind`` is 'replaced', 'upserted' or 'removed'."""

    kind: str
    task_ids: tuple[str, ...]


Listener = Callable[[CacheEvent], None]


class TaskCache:
    """
    Tasks keyed by id, in insertion order.

    The single source of truth for views. Views subscribe to be told when
    anything changes and recompute from ``snapshot()``.
    """

    def __init__(self, tasks: list[Task] | None = None):
        self._tasks: dict[str, Task] = {t.id: t for t in tasks or []}
        self._listeners: list[Listener] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def snapshot(self) -> list[Task]:
        """Current tasks in cache order. Safe to hold on to."""
        return list(self._tasks.values())

    def position(self, task_id: str) -> int | None:
        for i, key in enumerate(self._tasks):
            if key == task_id:
                return i
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: str, task_ids: tuple[str, ...]) -> None:
        event = CacheEvent(kind, task_ids)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Cache listener failed on {kind} event")

    def replace_all(self, tasks: list[Task]) -> None:
        """Swap in a whole new task set (explicit refresh)."""
        self._tasks = {t.id: t for t in tasks}
        self._notify("replaced", tuple(self._tasks))

    def put(self, task: Task, position: int | None = None) -> None:
        """Insert or replace a task.

        An existing id keeps its slot. A new id is appended, or inserted
        at ``position`` when given.
        """
        if task.id in self._tasks or position is None:
            self._tasks[task.id] = task
        else:
            items = list(self._tasks.items())
            items.insert(position, (task.id, task))
            self._tasks = dict(items)
        self._notify("upserted", (task.id,))

    def swap(self, old_id: str, task: Task) -> None:
        """Replace the entry under ``old_id`` by ``task`` in the same slot."""
        if old_id not in self._tasks:
            self.put(task)
            return
        self._tasks = {
            (task.id if key == old_id else key): (task if key == old_id else value)
            for key, value in self._tasks.items()
            if key == old_id or key != task.id
        }
        self._notify("upserted", (task.id,))

    def remove(self, task_id: str) -> Task | None:
        task = self._tasks.pop(task_id, None)
        if task is not None:
            self._notify("removed", (task_id,))
        return task
