"""Tests for the REST task adapter."""

from datetime import date, datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from taskview.adapters.rest_api import (
    RestTaskAdapter,
    draft_to_api,
    fields_to_api,
    task_from_api,
)
from taskview.config import Config
from taskview.core.tasks import Priority, TaskDraft, TaskStatus
from taskview.errors import RemoteError


def _response(status_code: int = 200, payload=None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.text = text
    resp.reason = ""
    resp.content = b"x" if payload is not None else b""
    resp.json.return_value = payload
    return resp


@pytest.fixture
def config():
    return Config(api_base_url="http://tasks.test/", fetch_page_size=2, request_timeout=5)


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    return s


@pytest.fixture
def adapter(config, session):
    return RestTaskAdapter(config, session=session)


API_TASK = {
    "_id": "65a1",
    "displayId": "T-0001",
    "priority": "High",
    "status": "In Progress",
    "deadline": "2025-01-20T00:00:00.000Z",
    "startDate": "2025-01-10",
    "hours": 3,
    "details": "Write report",
    "createdAt": "2025-01-02T08:30:00.000Z",
}


class TestTaskFromApi:
    def test_maps_wire_names(self):
        task = task_from_api(API_TASK)

        assert task.id == "65a1"
        assert task.display_id == "T-0001"
        assert task.priority == Priority.HIGH
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.deadline == date(2025, 1, 20)
        assert task.start_time == date(2025, 1, 10)
        assert task.hours == 3
        assert task.created_at == datetime(2025, 1, 2, 8, 30, tzinfo=timezone.utc)

    def test_expired_read_back_as_pending(self):
        task = task_from_api({**API_TASK, "status": "Expired"})
        assert task.status == TaskStatus.PENDING

    def test_in_progress_alias(self):
        assert task_from_api({**API_TASK, "status": "InProgress"}).status == TaskStatus.IN_PROGRESS

    def test_missing_start_date(self):
        data = {k: v for k, v in API_TASK.items() if k != "startDate"}
        assert task_from_api(data).start_time is None

    def test_naive_timestamp_gets_utc(self):
        task = task_from_api({**API_TASK, "createdAt": "2025-01-02T08:30:00"})
        assert task.created_at.tzinfo == timezone.utc


class TestFieldsToApi:
    def test_renames_and_serializes(self):
        payload = fields_to_api(
            {"start_time": date(2025, 6, 1), "status": TaskStatus.COMPLETED, "hours": 2}
        )
        assert payload == {"startDate": "2025-06-01", "status": "Completed", "hours": 2}

    def test_draft(self):
        draft = TaskDraft(details=" Plan ", deadline=date(2025, 6, 2))
        assert draft_to_api(draft) == {
            "priority": "Medium",
            "deadline": "2025-06-02",
            "hours": 1,
            "status": "Pending",
            "details": "Plan",
            "startDate": None,
        }


class TestRestTaskAdapter:
    def test_token_header(self, session):
        RestTaskAdapter(Config(api_token="secret"), session=session)
        assert session.headers["Authorization"] == "Bearer secret"

    def test_no_token_header_by_default(self, adapter, session):
        assert "Authorization" not in session.headers

    def test_fetch_all_walks_pages(self, adapter, session):
        session.request.side_effect = [
            _response(payload={
                "tasks": [API_TASK, {**API_TASK, "_id": "65a2"}],
                "pagination": {"total": 3, "page": 1, "limit": 2, "pages": 2},
            }),
            _response(payload={
                "tasks": [{**API_TASK, "_id": "65a3"}],
                "pagination": {"total": 3, "page": 2, "limit": 2, "pages": 2},
            }),
        ]

        tasks, meta = adapter.fetch_all()

        assert [t.id for t in tasks] == ["65a1", "65a2", "65a3"]
        assert meta.total == 3
        assert meta.pages == 2
        first_call = session.request.call_args_list[0]
        assert first_call.args == ("GET", "http://tasks.test/api/tasks")
        assert first_call.kwargs["params"]["limit"] == 2
        assert first_call.kwargs["timeout"] == 5

    def test_fetch_all_accepts_bare_list(self, adapter, session):
        session.request.return_value = _response(payload=[API_TASK])
        tasks, meta = adapter.fetch_all()
        assert len(tasks) == 1
        assert meta.pages == 1

    def test_create_posts_draft(self, adapter, session):
        session.request.return_value = _response(payload={**API_TASK, "id": "new"})
        task = adapter.create_task(TaskDraft(details="Write report", deadline=date(2025, 1, 20)))

        assert task.id == "new"
        method, url = session.request.call_args.args
        assert (method, url) == ("POST", "http://tasks.test/api/tasks")
        assert session.request.call_args.kwargs["json"]["details"] == "Write report"

    def test_update_sends_id_and_fills_missing_id(self, adapter, session):
        response = {k: v for k, v in API_TASK.items() if k != "_id"}
        session.request.return_value = _response(payload=response)

        task = adapter.update_task("65a1", {"start_time": date(2025, 1, 11)})

        assert task.id == "65a1"
        kwargs = session.request.call_args.kwargs
        assert kwargs["json"] == {"startDate": "2025-01-11", "id": "65a1"}
        assert session.request.call_args.args == ("PUT", "http://tasks.test/api/tasks/65a1")

    def test_update_rejects_non_object_response(self, adapter, session):
        session.request.return_value = _response(payload=[API_TASK])
        with pytest.raises(RemoteError):
            adapter.update_task("65a1", {"hours": 2})

    def test_delete(self, adapter, session):
        session.request.return_value = _response(payload={"success": True})
        assert adapter.delete_task("65a1") is True

    def test_http_error_becomes_remote_error(self, adapter, session):
        session.request.return_value = _response(404, text="Task not found")
        with pytest.raises(RemoteError) as exc:
            adapter.delete_task("65a1")
        assert exc.value.is_not_found
        assert exc.value.message == "Task not found"

    def test_transport_error_becomes_remote_error(self, adapter, session):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(RemoteError) as exc:
            adapter.fetch_all()
        assert exc.value.status_code is None

    def test_malformed_task_becomes_remote_error(self, adapter, session):
        session.request.return_value = _response(payload=[{"details": "no id"}])
        with pytest.raises(RemoteError):
            adapter.fetch_all()


class TestGatewayProtocol:
    @pytest.mark.asyncio
    async def test_async_methods_delegate(self, adapter):
        with patch.object(adapter, "delete_task", return_value=True) as mock_delete:
            assert await adapter.delete("65a1") is True
        mock_delete.assert_called_once_with("65a1")

    @pytest.mark.asyncio
    async def test_get_all_runs_fetch_all(self, adapter):
        with patch.object(adapter, "fetch_all", return_value=([], None)) as mock_fetch:
            assert await adapter.get_all() == ([], None)
        mock_fetch.assert_called_once()
