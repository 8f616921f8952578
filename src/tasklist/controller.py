from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, replace
from functools import lru_cache
from threading import RLock
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union

from .errors import TaskStoreError
from .models import TaskDict
from .store import TaskStore, get_task_store
from .utils import is_int_id

logger = logging.getLogger(__name__)

Listener = Callable[["ControllerState"], None]
ConfirmDelete = Callable[[int], bool]

@dataclass(frozen=True)
class ControllerState:
    """
    Immutable snapshot of what the UI shows.

    - tasks: current task list, newest id first after load/create
    - loading: True while an action is running
    - error: message of the last failure, cleared when the next action starts
    - error_code: code of the last failure (see errors.TaskStoreError.code)
    - input_text: current text of the new-task input
    """

    tasks: Tuple[TaskDict, ...] = ()
    loading: bool = False
    error: Optional[str] = None
    error_code: Optional[str] = None
    input_text: str = ""


def _sorted_desc(tasks: Iterable[TaskDict]) -> Tuple[TaskDict, ...]:
    def key(task: TaskDict) -> int:
        task_id = task.get("id")
        return task_id if is_int_id(task_id) else 0

    return tuple(sorted((t for t in tasks if isinstance(t, dict)), key=key, reverse=True))


def _always_confirm(task_id: int) -> bool:
    return True


# PUBLIC_INTERFACE
class TaskController:
    """
    Turns user intents into TaskStore calls and publishes ControllerState snapshots.

    Each action clears the previous error, publishes a loading state, runs the
    store call and publishes the resulting state. Store failures never escape an
    action; they land in state.error and are logged.
    """

    def __init__(self, store: TaskStore, *, confirm: ConfirmDelete = _always_confirm) -> None:
        self._store = store
        self._confirm = confirm
        self._state = ControllerState()
        self._listeners: List[Listener] = []
        self._lock = RLock()

    @property
    def state(self) -> ControllerState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for every new state. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, state: ControllerState) -> ControllerState:
        self._state = state
        for listener in list(self._listeners):
            listener(state)
        return state

    @contextmanager
    def _running(self) -> Iterator[None]:
        """Publish loading=True for the duration of an action and always drop it afterwards."""
        self._publish(replace(self._state, loading=True, error=None, error_code=None))
        try:
            yield
        finally:
            if self._state.loading:
                self._publish(replace(self._state, loading=False))

    def _fail(self, exc: TaskStoreError) -> ControllerState:
        logger.error("Task action failed: %s", exc.message)
        return self._publish(
            replace(self._state, loading=False, error=exc.message, error_code=exc.code)
        )

    @staticmethod
    def _is_task(task: TaskDict, task_id: int) -> bool:
        return is_int_id(task.get("id")) and task["id"] == task_id

    # ---- actions ----

    def set_input(self, text: str) -> ControllerState:
        with self._lock:
            return self._publish(replace(self._state, input_text=text))

    def load(self) -> ControllerState:
        """Fetch the whole collection and show it newest first."""
        with self._lock, self._running():
            try:
                tasks = _sorted_desc(self._store.list())
            except TaskStoreError as exc:
                return self._fail(exc)
            return self._publish(replace(self._state, tasks=tasks, loading=False))

    def create(self) -> ControllerState:
        """Create a task from the input text, then reload the list and clear the input."""
        with self._lock:
            title = self._state.input_text.strip()
            if not title:
                return self._publish(
                    replace(
                        self._state,
                        error="Title cannot be empty",
                        error_code="validation_error",
                    )
                )
            with self._running():
                try:
                    self._store.create(title)
                    tasks = _sorted_desc(self._store.list())
                except TaskStoreError as exc:
                    return self._fail(exc)
                return self._publish(
                    replace(self._state, tasks=tasks, loading=False, input_text="")
                )

    def toggle_completed(self, task_id: int) -> ControllerState:
        """Flip the completed flag of one task and patch it into the current list in place."""
        with self._lock:
            current = next((t for t in self._state.tasks if self._is_task(t, task_id)), None)
            completed = bool(current.get("completed")) if current is not None else False
            with self._running():
                try:
                    updated = self._store.update(task_id, {"completed": not completed})
                except TaskStoreError as exc:
                    return self._fail(exc)
                tasks = tuple(
                    updated if self._is_task(t, task_id) else t for t in self._state.tasks
                )
                return self._publish(replace(self._state, tasks=tasks, loading=False))

    def delete(self, task_id: int) -> ControllerState:
        """Delete a task after confirmation and drop it from the current list."""
        with self._lock:
            if not self._confirm(task_id):
                logger.debug("Delete of task id=%s not confirmed", task_id)
                return self._state
            with self._running():
                try:
                    self._store.delete(task_id)
                except TaskStoreError as exc:
                    return self._fail(exc)
                tasks = tuple(t for t in self._state.tasks if not self._is_task(t, task_id))
                return self._publish(replace(self._state, tasks=tasks, loading=False))

    def import_tasks(self, json_text: Union[str, bytes]) -> ControllerState:
        """Replace the collection from a JSON backup and show the result."""
        with self._lock, self._running():
            try:
                self._store.import_tasks(json_text)
                tasks = _sorted_desc(self._store.list())
            except TaskStoreError as exc:
                return self._fail(exc)
            return self._publish(replace(self._state, tasks=tasks, loading=False))

    def clear_all(self) -> ControllerState:
        with self._lock, self._running():
            self._store.clear()
            return self._publish(replace(self._state, tasks=(), loading=False))


# PUBLIC_INTERFACE
@lru_cache(maxsize=None)
def get_controller() -> TaskController:
    """Return the process-wide TaskController bound to the shared TaskStore."""
    return TaskController(get_task_store())
