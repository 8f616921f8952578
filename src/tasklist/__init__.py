"""
Single-user task list.

TaskStore keeps the task collection as one JSON array in a key-value storage
slot; TaskController turns user intents into store calls and publishes UI
state; the FastAPI app in tasklist.main exposes both over HTTP.
"""

from .controller import ControllerState, TaskController
from .errors import NotFoundError, TaskImportError, TaskStoreError, ValidationError
from .storage import InMemoryStorage, KeyValueStorage
from .store import TaskStore

__all__ = [
    "ControllerState",
    "InMemoryStorage",
    "KeyValueStorage",
    "NotFoundError",
    "TaskController",
    "TaskImportError",
    "TaskStore",
    "TaskStoreError",
    "ValidationError",
]
