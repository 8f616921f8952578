from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A task record as persisted in the storage slot.

    Fields:
    - id: Unique positive integer, assigned as max(existing ids) + 1
    - title: Non-empty title (trimmed on create/update)
    - completed: Boolean completion flag
    - created_at: ISO8601 UTC creation timestamp, never changes
    - updated_at: ISO8601 UTC timestamp of the last mutation

    Imported records may carry extra keys; they are kept verbatim, so stores
    operate on plain dicts and this type documents the common shape.
    """

    id: int
    title: str
    completed: bool
    created_at: str
    updated_at: str


TaskDict = Dict[str, Any]


@dataclass(frozen=True)
class CreateResult:
    """Outcome of a successful create: the stored record and a confirmation message."""

    task: TaskDict
    message: str


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a successful import."""

    count: int
    tasks: List[TaskDict]
    message: str


@dataclass(frozen=True)
class ExportBundle:
    """A ready-to-download backup: file name plus pretty-printed JSON content."""

    filename: str
    content: str
