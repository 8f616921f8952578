from __future__ import annotations


class TaskStoreError(Exception):
    """
    Base class for failures reported by the task store.

    Attributes:
    - message: human-readable text suitable for showing to the user
    - code: stable identifier used by the HTTP layer to pick a status code
    """

    code = "task_store_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class ValidationError(TaskStoreError):
    """A title was missing, not a string, or blank after trimming."""

    code = "validation_error"


# PUBLIC_INTERFACE
class NotFoundError(TaskStoreError):
    """No task with the requested id exists."""

    code = "not_found"

    def __init__(self, task_id: int, message: str = "Task not found") -> None:
        super().__init__(message)
        self.task_id = task_id


# PUBLIC_INTERFACE
class TaskImportError(TaskStoreError):
    """The import payload was not a JSON array."""

    code = "import_error"
