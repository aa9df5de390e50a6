"""Serialized create/update/delete against the remote store.

The coordinator is the only writer of the TaskCache. Each mutation is
applied to the cache optimistically, sent to the gateway in the background,
then reconciled with the server's answer or rolled back.

Ordering rules:
- every issued operation gets a sequence number, recorded as the latest for
  its task id; a completion that is no longer the latest is discarded;
- at most one call per (kind, id) is in flight, and a short cooldown after
  it completes keeps suppressing repeats of the same key.
"""

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable

from taskview.cache import TaskCache
from taskview.core.tasks import (
    Task,
    TaskDraft,
    apply_patch,
    coerce_patch,
    task_from_draft,
    validate_draft,
)
from taskview.errors import NotFoundError, RemoteError, TaskViewError, ValidationError
from taskview.ports.task_gateway import PaginationMeta, RemoteTaskGateway

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN = 1.0
DEFAULT_TIMEOUT = 10.0
PROVISIONAL_PREFIX = "local-"


class OperationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    REFRESH = "refresh"


class Outcome(str, Enum):
    APPLIED = "applied"  # gateway confirmed, cache reconciled
    REJECTED = "rejected"  # failed locally, gateway never called
    FAILED = "failed"  # gateway failed, optimistic change rolled back
    DROPPED = "dropped"  # duplicate of an in-flight or cooling-down call
    SUPERSEDED = "superseded"  # a newer operation on the same id won


@dataclass(frozen=True)
class MutationResult:
    kind: OperationKind
    task_id: str | None
    outcome: Outcome
    task: Task | None = None
    error: TaskViewError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.APPLIED


class MutationCoordinator:
    """
    Applies mutations to a TaskCache through a RemoteTaskGateway.

    Must be used from a single asyncio event loop. Mutating methods return
    immediately with a future that resolves to a MutationResult; they never
    raise for validation, lookup or remote failures.
    """

    def __init__(
        self,
        gateway: RemoteTaskGateway,
        cache: TaskCache | None = None,
        cooldown: float = DEFAULT_COOLDOWN,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = date.today,
    ):
        self.gateway = gateway
        self.cache = cache if cache is not None else TaskCache()
        self.cooldown = cooldown
        self.timeout = timeout
        self.remote_meta = PaginationMeta()
        self._clock = clock
        self._today = today
        self._seq = itertools.count(1)
        self._latest: dict[str, int] = {}
        self._pending_deletes: set[str] = set()
        self._provisional: set[str] = set()
        self._in_flight: set[tuple[OperationKind, str | None]] = set()
        self._cooldown_until: dict[tuple[OperationKind, str | None], float] = {}
        self._errors: dict[str, RemoteError] = {}
        self._provisional_ids = itertools.count(1)

    # ============== Per-task state ==============

    def is_pending(self, task_id: str) -> bool:
        """True while an optimistic change for ``task_id`` awaits the gateway."""
        return task_id in self._latest

    def error_for(self, task_id: str) -> RemoteError | None:
        """Remote error from the last rolled-back mutation of ``task_id``."""
        return self._errors.get(task_id)

    def is_provisional(self, task_id: str) -> bool:
        return task_id in self._provisional

    # ============== Duplicate guard ==============

    def _is_suppressed(self, key: tuple[OperationKind, str | None]) -> bool:
        if key in self._in_flight:
            return True
        until = self._cooldown_until.get(key)
        if until is None:
            return False
        if self._clock() < until:
            return True
        del self._cooldown_until[key]
        return False

    def _release(self, key: tuple[OperationKind, str | None]) -> None:
        self._in_flight.discard(key)
        now = self._clock()
        expired = [k for k, until in self._cooldown_until.items() if until <= now]
        for k in expired:
            del self._cooldown_until[k]
        self._cooldown_until[key] = now + self.cooldown

    def _forget(self, task_id: str) -> None:
        """Drop bookkeeping for a task that no longer exists on the server."""
        self._errors.pop(task_id, None)
        self._cooldown_until.pop((OperationKind.UPDATE, task_id), None)

    def _issue(self, task_id: str) -> int:
        seq = next(self._seq)
        self._latest[task_id] = seq
        return seq

    def _is_current(self, task_id: str, seq: int) -> bool:
        return self._latest.get(task_id) == seq

    def _settle(self, task_id: str, seq: int) -> None:
        if self._is_current(task_id, seq):
            del self._latest[task_id]

    # ============== Result helpers ==============

    def _done(self, result: MutationResult) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        future.set_result(result)
        return future

    def _dropped(self, kind: OperationKind, task_id: str | None) -> asyncio.Future:
        logger.debug(f"Dropped duplicate {kind.value} for {task_id}")
        return self._done(MutationResult(kind, task_id, Outcome.DROPPED))

    def _rejected(
        self, kind: OperationKind, task_id: str | None, error: TaskViewError
    ) -> asyncio.Future:
        logger.info(f"Rejected {kind.value} for {task_id}: {error}")
        return self._done(MutationResult(kind, task_id, Outcome.REJECTED, error=error))

    async def _call(self, coro):
        """Await a gateway call with the configured timeout."""
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise RemoteError(None, f"Gateway call timed out after {self.timeout}s") from e
        except RemoteError:
            raise
        except Exception as e:
            logger.exception("Gateway call failed unexpectedly")
            raise RemoteError(None, f"Gateway call failed: {e!r}") from e

    # ============== Operations ==============

    def create(self, draft: TaskDraft) -> asyncio.Future:
        """Validate ``draft``, show it provisionally and send it to the gateway."""
        kind = OperationKind.CREATE
        key = (kind, None)
        if self._is_suppressed(key):
            return self._dropped(kind, None)

        try:
            validate_draft(draft, self._today())
        except ValidationError as e:
            return self._rejected(kind, None, e)

        local_id = f"{PROVISIONAL_PREFIX}{next(self._provisional_ids)}"
        provisional = task_from_draft(draft, local_id, datetime.now(timezone.utc))
        self._provisional.add(local_id)
        self.cache.put(provisional)
        seq = self._issue(local_id)
        self._in_flight.add(key)
        return asyncio.ensure_future(self._finish_create(key, local_id, seq, draft))

    async def _finish_create(
        self, key, local_id: str, seq: int, draft: TaskDraft
    ) -> MutationResult:
        kind = OperationKind.CREATE
        try:
            task = await self._call(self.gateway.create(draft))
        except RemoteError as e:
            self._provisional.discard(local_id)
            if self._is_current(local_id, seq):
                self.cache.remove(local_id)
            self._settle(local_id, seq)
            logger.warning(f"Create failed, provisional task removed: {e}")
            return MutationResult(kind, None, Outcome.FAILED, error=e)
        finally:
            self._release(key)

        self._provisional.discard(local_id)
        self._settle(local_id, seq)
        self.cache.swap(local_id, task)
        logger.info(f"Created task {task.id}")
        return MutationResult(kind, task.id, Outcome.APPLIED, task=task)

    def update(self, task_id: str, patch: dict) -> asyncio.Future:
        """Apply ``patch`` optimistically, then reconcile with the server."""
        kind = OperationKind.UPDATE
        key = (kind, task_id)
        if self._is_suppressed(key):
            return self._dropped(kind, task_id)

        snapshot = self.cache.get(task_id)
        if snapshot is None or task_id in self._provisional:
            return self._rejected(kind, task_id, NotFoundError(task_id))

        try:
            changes = coerce_patch(patch)
            optimistic = apply_patch(snapshot, changes)
        except ValidationError as e:
            return self._rejected(kind, task_id, e)

        self.cache.put(optimistic)
        seq = self._issue(task_id)
        self._in_flight.add(key)
        return asyncio.ensure_future(self._finish_update(key, task_id, seq, changes, snapshot))

    async def _finish_update(
        self, key, task_id: str, seq: int, changes: dict, snapshot: Task
    ) -> MutationResult:
        kind = OperationKind.UPDATE
        try:
            task = await self._call(self.gateway.update(task_id, changes))
        except RemoteError as e:
            if not self._is_current(task_id, seq):
                logger.info(f"Discarding stale update failure for {task_id}")
                return MutationResult(kind, task_id, Outcome.SUPERSEDED, error=e)
            self._settle(task_id, seq)
            self.cache.put(snapshot)
            self._errors[task_id] = e
            logger.warning(f"Update of {task_id} failed, reverted: {e}")
            return MutationResult(kind, task_id, Outcome.FAILED, task=snapshot, error=e)
        finally:
            self._release(key)

        if not self._is_current(task_id, seq):
            logger.info(f"Discarding stale update result for {task_id}")
            return MutationResult(kind, task_id, Outcome.SUPERSEDED, task=task)
        self._settle(task_id, seq)
        self._errors.pop(task_id, None)
        self.cache.put(task)
        return MutationResult(kind, task_id, Outcome.APPLIED, task=task)

    def delete(self, task_id: str) -> asyncio.Future:
        """Remove the task optimistically, restoring it if the gateway fails."""
        kind = OperationKind.DELETE
        key = (kind, task_id)
        if self._is_suppressed(key):
            return self._dropped(kind, task_id)

        if task_id not in self.cache or task_id in self._provisional:
            return self._rejected(kind, task_id, NotFoundError(task_id))

        position = self.cache.position(task_id)
        snapshot = self.cache.remove(task_id)
        seq = self._issue(task_id)
        self._in_flight.add(key)
        self._pending_deletes.add(task_id)
        return asyncio.ensure_future(
            self._finish_delete(key, task_id, seq, snapshot, position)
        )

    async def _finish_delete(
        self, key, task_id: str, seq: int, snapshot: Task, position: int | None
    ) -> MutationResult:
        kind = OperationKind.DELETE
        try:
            await self._call(self.gateway.delete(task_id))
        except RemoteError as e:
            if not e.is_not_found:
                if not self._is_current(task_id, seq):
                    return MutationResult(kind, task_id, Outcome.SUPERSEDED, error=e)
                self._settle(task_id, seq)
                self.cache.put(snapshot, position)
                self._errors[task_id] = e
                logger.warning(f"Delete of {task_id} failed, restored: {e}")
                return MutationResult(kind, task_id, Outcome.FAILED, task=snapshot, error=e)
            logger.info(f"Task {task_id} was already gone on the server")
        finally:
            self._pending_deletes.discard(task_id)
            self._release(key)

        self._settle(task_id, seq)
        self._forget(task_id)
        return MutationResult(kind, task_id, Outcome.APPLIED)

    async def refresh(self) -> MutationResult:
        """Replace the cache with the server's full task set."""
        kind = OperationKind.REFRESH
        try:
            tasks, meta = await self._call(self.gateway.get_all())
        except RemoteError as e:
            logger.warning(f"Refresh failed: {e}")
            return MutationResult(kind, None, Outcome.FAILED, error=e)

        kept = [t for t in tasks if t.id not in self._pending_deletes]
        kept += [t for t in self.cache.snapshot() if t.id in self._provisional]
        self.cache.replace_all(kept)
        self.remote_meta = meta
        logger.debug(f"Refreshed cache with {len(kept)} tasks")
        return MutationResult(kind, None, Outcome.APPLIED)
