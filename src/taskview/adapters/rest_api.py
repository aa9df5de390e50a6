"""REST task store adapter - HTTP client for the task API."""

import asyncio
import logging
from datetime import date, datetime, timezone

import requests

from taskview.config import Config, load_config
from taskview.core.tasks import Priority, Task, TaskDraft, TaskStatus, parse_date
from taskview.errors import RemoteError
from taskview.ports.task_gateway import PaginationMeta

logger = logging.getLogger(__name__)

TASKS_ENDPOINT = "/api/tasks"

# Local field name -> wire field name. Renaming only, no value changes.
WIRE_NAMES = {
    "start_time": "startDate",
    "created_at": "createdAt",
    "display_id": "displayId",
}


def _parse_timestamp(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_status(value: str | None) -> TaskStatus:
    if value == "Expired":
        # Legacy servers stored the derived status; it is recomputed locally.
        logger.warning("Server returned stored status 'Expired', reading it as Pending")
        return TaskStatus.PENDING
    return TaskStatus.parse(value or TaskStatus.PENDING.value)


def task_from_api(data: dict) -> Task:
    """Create Task from an API task object."""
    return Task(
        id=str(data.get("id") or data["_id"]),
        priority=Priority(data.get("priority") or Priority.MEDIUM.value),
        status=_parse_status(data.get("status")),
        deadline=parse_date(data.get("deadline")),
        start_time=parse_date(data.get(WIRE_NAMES["start_time"])),
        hours=int(data.get("hours") or 1),
        details=data.get("details", ""),
        created_at=_parse_timestamp(data.get(WIRE_NAMES["created_at"])),
        display_id=str(data.get(WIRE_NAMES["display_id"]) or ""),
    )


def fields_to_api(values: dict) -> dict:
    """Translate local field values to the wire representation."""
    payload = {}
    for key, value in values.items():
        if isinstance(value, (TaskStatus, Priority)):
            value = value.value
        elif isinstance(value, date):
            value = value.isoformat()
        payload[WIRE_NAMES.get(key, key)] = value
    return payload


def draft_to_api(draft: TaskDraft) -> dict:
    return fields_to_api(
        {
            "priority": draft.priority,
            "deadline": draft.deadline,
            "hours": draft.hours,
            "status": draft.status,
            "details": draft.details.strip(),
            "start_time": draft.start_time,
        }
    )


class RestTaskAdapter:
    """
    REST task store adapter.

    Implements RemoteTaskGateway protocol. Blocking HTTP calls run in a
    worker thread so the event loop is never blocked. No business logic -
    just I/O and field renaming.
    """

    def __init__(self, config: Config | None = None, session: requests.Session | None = None):
        self.config = config or load_config()
        self._session = session or requests.Session()
        self._session.headers.update({"Content-Type": "application/json"})
        if self.config.api_token:
            self._session.headers.update({"Authorization": f"Bearer {self.config.api_token}"})

    def _api_request(self, method: str, endpoint: str, **kwargs) -> dict | list:
        """Make an API request, translating every failure into RemoteError."""
        url = f"{self.config.api_base_url.rstrip('/')}{endpoint}"
        logger.debug(f"{method} {url}")
        try:
            resp = self._session.request(
                method, url, timeout=self.config.request_timeout, **kwargs
            )
        except requests.RequestException as e:
            raise RemoteError(None, f"Request to {url} failed: {e}") from e

        if not resp.ok:
            raise RemoteError(resp.status_code, resp.text or resp.reason or "request failed")
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteError(resp.status_code, f"Invalid JSON from {url}") from e

    def _to_task(self, data: dict) -> Task:
        try:
            return task_from_api(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RemoteError(None, f"Malformed task in response: {e}") from e

    def _fetch_page(self, page: int) -> tuple[list[Task], PaginationMeta]:
        data = self._api_request(
            "GET",
            TASKS_ENDPOINT,
            params={
                "page": page,
                "limit": self.config.fetch_page_size,
                "sortField": "createdAt",
                "sortDirection": "desc",
            },
        )
        if isinstance(data, list):
            tasks = [self._to_task(t) for t in data]
            return tasks, PaginationMeta(total=len(tasks), page=1, limit=len(tasks), pages=1)

        tasks = [self._to_task(t) for t in data.get("tasks", [])]
        meta = data.get("pagination", {})
        return tasks, PaginationMeta(
            total=meta.get("total", len(tasks)),
            page=meta.get("page", page),
            limit=meta.get("limit", self.config.fetch_page_size),
            pages=meta.get("pages", 1),
        )

    def fetch_all(self) -> tuple[list[Task], PaginationMeta]:
        """Fetch all tasks, walking every page of the listing."""
        tasks, meta = self._fetch_page(1)
        page = 1
        while page < meta.pages:
            page += 1
            more, meta = self._fetch_page(page)
            if not more:
                break
            tasks.extend(more)
        return tasks, meta

    def create_task(self, draft: TaskDraft) -> Task:
        data = self._api_request("POST", TASKS_ENDPOINT, json=draft_to_api(draft))
        return self._to_task(data)

    def update_task(self, task_id: str, patch: dict) -> Task:
        payload = fields_to_api(patch)
        payload["id"] = task_id
        data = self._api_request("PUT", f"{TASKS_ENDPOINT}/{task_id}", json=payload)
        if not isinstance(data, dict):
            raise RemoteError(None, f"Unexpected response updating task {task_id}")
        if not data.get("id") and not data.get("_id"):
            data = {**data, "id": task_id}
        return self._to_task(data)

    def delete_task(self, task_id: str) -> bool:
        self._api_request("DELETE", f"{TASKS_ENDPOINT}/{task_id}")
        return True

    # RemoteTaskGateway protocol

    async def get_all(self) -> tuple[list[Task], PaginationMeta]:
        return await asyncio.to_thread(self.fetch_all)

    async def create(self, draft: TaskDraft) -> Task:
        return await asyncio.to_thread(self.create_task, draft)

    async def update(self, task_id: str, patch: dict) -> Task:
        return await asyncio.to_thread(self.update_task, task_id, patch)

    async def delete(self, task_id: str) -> bool:
        return await asyncio.to_thread(self.delete_task, task_id)
