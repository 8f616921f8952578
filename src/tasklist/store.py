from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import RLock
from typing import Any, Iterable, List, Mapping, Optional, Union

from .errors import NotFoundError, TaskImportError, ValidationError
from .models import CreateResult, ExportBundle, ImportResult, TaskDict, TaskEntity
from .settings import get_settings
from .storage import KeyValueStorage, get_storage
from .utils import Clock, backup_filename, is_int_id, isoformat_utc, utc_now

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "tasks-app"

# Keys a task keeps for its whole lifetime; update() never overwrites them.
_IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


def _clean_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Title cannot be empty")
    return value.strip()


# PUBLIC_INTERFACE
class TaskStore:
    """
    Sole owner of the persisted task collection.

    The collection is a JSON array stored under a single key of a KeyValueStorage
    backend. Every mutating call reads the slot, builds the new collection in
    memory and writes it back with one set(); a raised error leaves the slot as it
    was. Calls are serialized with a lock.

    A slot holding anything other than a JSON array is discarded on read and the
    slot is removed (self-heal); this is logged but not reported to the caller.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        clock: Clock = utc_now,
    ) -> None:
        self._storage = storage
        self._key = key
        self._clock = clock
        self._lock = RLock()

    @property
    def key(self) -> str:
        return self._key

    # ---- low-level helpers ----

    def _now(self) -> str:
        return isoformat_utc(self._clock())

    def _read(self) -> List[TaskDict]:
        raw = self._storage.get(self._key)
        if not raw:
            return []
        try:
            tasks = json.loads(raw)
        except (ValueError, RecursionError):
            logger.warning(
                "Discarding unreadable task collection key=%s length=%d", self._key, len(raw)
            )
            self._storage.remove(self._key)
            return []
        if not isinstance(tasks, list):
            logger.warning(
                "Discarding task collection key=%s: expected array, got %s",
                self._key,
                type(tasks).__name__,
            )
            self._storage.remove(self._key)
            return []
        return tasks

    def _write(self, tasks: List[TaskDict]) -> None:
        self._storage.set(self._key, json.dumps(tasks, ensure_ascii=False))

    @staticmethod
    def _index_of(tasks: List[TaskDict], task_id: int) -> int:
        for i, task in enumerate(tasks):
            if isinstance(task, dict) and is_int_id(task.get("id")) and task["id"] == task_id:
                return i
        return -1

    @staticmethod
    def _next_id(tasks: Iterable[TaskDict]) -> int:
        ids = [t["id"] for t in tasks if isinstance(t, dict) and is_int_id(t.get("id"))]
        return max(ids) + 1 if ids else 1

    # ---- public API ----

    def list(self) -> List[TaskDict]:
        """Return the whole collection in persisted order."""
        with self._lock:
            return self._read()

    def create(self, title: Any) -> CreateResult:
        """Create a task at the head of the collection. Raises ValidationError for a blank title."""
        clean = _clean_title(title)
        with self._lock:
            tasks = self._read()
            now = self._now()
            task: TaskEntity = {
                "id": self._next_id(tasks),
                "title": clean,
                "completed": False,
                "created_at": now,
                "updated_at": now,
            }
            self._write([task, *tasks])
            logger.debug("Task created id=%s", task["id"])
            return CreateResult(task=dict(task), message="Task created successfully")

    def get_by_id(self, task_id: int) -> Optional[TaskDict]:
        with self._lock:
            tasks = self._read()
            idx = self._index_of(tasks, task_id)
            return None if idx == -1 else tasks[idx]

    def update(self, task_id: int, changes: Mapping[str, Any]) -> TaskDict:
        """
        Shallow-merge changes onto an existing task and refresh updated_at.

        Raises:
            NotFoundError if no task has the id.
            ValidationError if 'title' is among the changes and is blank.
        """
        with self._lock:
            tasks = self._read()
            idx = self._index_of(tasks, task_id)
            if idx == -1:
                raise NotFoundError(task_id)

            updated = dict(tasks[idx])
            for field, value in changes.items():
                if field in _IMMUTABLE_FIELDS:
                    logger.debug("Ignoring change to immutable field %s on task id=%s", field, task_id)
                    continue
                updated[field] = value
            updated["updated_at"] = self._now()
            if "title" in changes:
                updated["title"] = _clean_title(changes["title"])

            tasks[idx] = updated
            self._write(tasks)
            logger.debug("Task updated id=%s fields=%s", task_id, sorted(changes))
            return dict(updated)

    def delete(self, task_id: int) -> str:
        """Remove a task. Raises NotFoundError if no task has the id."""
        with self._lock:
            tasks = self._read()
            idx = self._index_of(tasks, task_id)
            if idx == -1:
                raise NotFoundError(task_id)
            del tasks[idx]
            self._write(tasks)
            logger.debug("Task deleted id=%s", task_id)
            return "Task deleted successfully"

    def clear(self) -> str:
        with self._lock:
            self._storage.remove(self._key)
            logger.info("All tasks cleared key=%s", self._key)
            return "All tasks have been deleted"

    def export(self) -> ExportBundle:
        """Serialize the collection as indented JSON under a dated backup file name."""
        with self._lock:
            tasks = self._read()
            content = json.dumps(tasks, indent=2, ensure_ascii=False)
            return ExportBundle(filename=backup_filename(self._clock()), content=content)

    def export_to(self, directory: Union[str, Path]) -> Path:
        """Write the export bundle into directory and return the file path."""
        bundle = self.export()
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / bundle.filename
        out_path.write_text(bundle.content, encoding="utf-8")
        logger.info("Exported tasks to %s", out_path)
        return out_path

    def import_tasks(self, json_text: Union[str, bytes]) -> ImportResult:
        """
        Replace the whole collection with the tasks found in json_text.

        Entries that are not objects with a non-empty string 'title' are dropped.
        Raises TaskImportError if json_text is not a JSON array.
        """
        try:
            parsed = json.loads(json_text)
        except (ValueError, RecursionError) as e:
            raise TaskImportError(f"Failed to import tasks: {e}") from e
        if not isinstance(parsed, list):
            raise TaskImportError(
                "Failed to import tasks: the payload does not contain a valid array of tasks"
            )

        accepted = [
            entry
            for entry in parsed
            if isinstance(entry, dict) and isinstance(entry.get("title"), str) and entry["title"]
        ]
        with self._lock:
            self._write(accepted)
        dropped = len(parsed) - len(accepted)
        logger.info("Imported tasks accepted=%d dropped=%d", len(accepted), dropped)
        return ImportResult(
            count=len(accepted),
            tasks=accepted,
            message=f"{len(accepted)} tasks imported successfully",
        )


# PUBLIC_INTERFACE
@lru_cache(maxsize=None)
def get_task_store() -> TaskStore:
    """
    Return the process-wide TaskStore wired to the configured storage backend and slot key.
    """
    settings = get_settings()
    return TaskStore(get_storage(), key=settings.storage_key)
