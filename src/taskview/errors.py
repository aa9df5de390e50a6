"""Error types reported by the task view engine."""


class TaskViewError(Exception):
    """Base class for all task view errors."""

    pass


class ValidationError(TaskViewError):
    """Raised when a draft or patch has missing or contradictory fields."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class NotFoundError(TaskViewError):
    """Raised when an update or delete targets an id that is not cached."""

    def __init__(self, task_id: str):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class RemoteError(TaskViewError):
    """Raised for any failure reported by the remote task store."""

    def __init__(self, status_code: int | None, message: str):
        super().__init__(f"{status_code}: {message}" if status_code else message)
        self.status_code = status_code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404
