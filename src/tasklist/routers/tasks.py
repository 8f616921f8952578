from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from ..errors import NotFoundError
from ..schemas import CreateOut, ImportOut, MessageOut, TaskCreate, TaskOut, TaskUpdate
from ..store import TaskStore, get_task_store

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)


def _get_store(store: TaskStore = Depends(get_task_store)) -> TaskStore:
    """
    Dependency wrapper for the task store to keep signatures clean.
    """
    return store


async def raw_body(request: Request) -> bytes:
    """
    Dependency returning the undecoded request body, so sync routes can take it.
    """
    return await request.body()


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TaskOut],
    response_model_exclude_unset=True,
    summary="List Tasks",
    description="Return the whole task collection in persisted order.",
)
def list_tasks(store: TaskStore = Depends(_get_store)) -> List[TaskOut]:
    """
    List all tasks. A corrupted collection is discarded and reported as empty.
    """
    return [TaskOut(**t) for t in store.list() if isinstance(t, dict)]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=CreateOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new task at the head of the collection.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Blank title"},
    },
)
def create_task(payload: TaskCreate, store: TaskStore = Depends(_get_store)) -> CreateOut:
    result = store.create(payload.title)
    return CreateOut(message=result.message, task=TaskOut(**result.task))


# PUBLIC_INTERFACE
@router.delete(
    "/",
    response_model=MessageOut,
    summary="Clear Tasks",
    description="Delete every task.",
)
def clear_tasks(store: TaskStore = Depends(_get_store)) -> MessageOut:
    return MessageOut(message=store.clear())


# PUBLIC_INTERFACE
@router.get(
    "/export",
    summary="Export Tasks",
    description="Download the collection as a pretty-printed JSON backup file.",
    responses={200: {"content": {"application/json": {}}, "description": "Backup file"}},
)
def export_tasks(store: TaskStore = Depends(_get_store)) -> Response:
    """
    Return the backup as an attachment named tasks-backup-<date>.json.
    """
    bundle = store.export()
    return Response(
        content=bundle.content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{bundle.filename}"'},
    )


# PUBLIC_INTERFACE
@router.post(
    "/import",
    response_model=ImportOut,
    response_model_exclude_unset=True,
    summary="Import Tasks",
    description=(
        "Replace the whole collection with the JSON array sent as the request body. "
        "Entries without a non-empty string title are dropped."
    ),
    responses={
        200: {"description": "Tasks imported"},
        400: {"description": "Body is not a JSON array"},
    },
)
def import_tasks(
    raw: bytes = Depends(raw_body), store: TaskStore = Depends(_get_store)
) -> ImportOut:
    result = store.import_tasks(raw)
    return ImportOut(
        message=result.message,
        count=result.count,
        tasks=[TaskOut(**t) for t in result.tasks],
    )


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    response_model_exclude_unset=True,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: int, store: TaskStore = Depends(_get_store)) -> TaskOut:
    item = store.get_by_id(task_id)
    if item is None:
        raise NotFoundError(task_id)
    return TaskOut(**item)


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    response_model_exclude_unset=True,
    summary="Update Task",
    description="Partially update fields of a task; id and created_at never change.",
    responses={
        200: {"description": "Task updated"},
        404: {"description": "Task not found"},
        422: {"description": "Blank title"},
    },
)
def patch_task(task_id: int, payload: TaskUpdate, store: TaskStore = Depends(_get_store)) -> TaskOut:
    updated = store.update(task_id, payload.changes())
    return TaskOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=MessageOut,
    summary="Delete Task",
    description="Delete a task by ID.",
    responses={
        200: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: int, store: TaskStore = Depends(_get_store)) -> MessageOut:
    return MessageOut(message=store.delete(task_id))
