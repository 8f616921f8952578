from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Depends, Query, Response, status

from ..controller import ControllerState, TaskController, get_controller
from ..schemas import InputText, StateOut
from .tasks import raw_body

router = APIRouter(
    prefix="/api/v1/app",
    tags=["app"],
)

# Status used when the last action left an error in the state.
_ERROR_STATUS: Dict[str, int] = {
    "validation_error": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "not_found": status.HTTP_404_NOT_FOUND,
    "import_error": status.HTTP_400_BAD_REQUEST,
}


def _get_controller(controller: TaskController = Depends(get_controller)) -> TaskController:
    """
    Dependency wrapper for the controller to keep signatures clean.
    """
    return controller


def _render(state: ControllerState, response: Response) -> StateOut:
    if state.error_code is not None:
        response.status_code = _ERROR_STATUS.get(state.error_code, status.HTTP_400_BAD_REQUEST)
    return StateOut.from_state(state)


# PUBLIC_INTERFACE
@router.get(
    "/state",
    response_model=StateOut,
    response_model_exclude_unset=True,
    summary="Current State",
    description="Return the controller state without running any action.",
)
def get_state(controller: TaskController = Depends(_get_controller)) -> StateOut:
    return StateOut.from_state(controller.state)


# PUBLIC_INTERFACE
@router.post(
    "/load",
    response_model=StateOut,
    response_model_exclude_unset=True,
    summary="Load Tasks",
    description="Reload the task list from storage, newest first.",
)
def load(response: Response, controller: TaskController = Depends(_get_controller)) -> StateOut:
    return _render(controller.load(), response)


# PUBLIC_INTERFACE
@router.put(
    "/input",
    response_model=StateOut,
    response_model_exclude_unset=True,
    summary="Set Input",
    description="Set the text of the new-task input.",
)
def set_input(payload: InputText, controller: TaskController = Depends(_get_controller)) -> StateOut:
    return StateOut.from_state(controller.set_input(payload.text))


# PUBLIC_INTERFACE
@router.post(
    "/create",
    response_model=StateOut,
    response_model_exclude_unset=True,
    summary="Create From Input",
    description="Create a task from the current input text, reload the list and clear the input.",
    responses={422: {"description": "Input is blank"}},
)
def create(response: Response, controller: TaskController = Depends(_get_controller)) -> StateOut:
    return _render(controller.create(), response)


# PUBLIC_INTERFACE
@router.post(
    "/tasks/{task_id}/toggle",
    response_model=StateOut,
    response_model_exclude_unset=True,
    summary="Toggle Completed",
    description="Flip the completed flag of a task.",
    responses={404: {"description": "Task not found"}},
)
def toggle(
    task_id: int, response: Response, controller: TaskController = Depends(_get_controller)
) -> StateOut:
    return _render(controller.toggle_completed(task_id), response)


# PUBLIC_INTERFACE
@router.delete(
    "/tasks/{task_id}",
    response_model=StateOut,
    response_model_exclude_unset=True,
    summary="Delete Task",
    description="Delete a task when confirm is true; otherwise leave everything as is.",
    responses={404: {"description": "Task not found"}},
)
def delete(
    task_id: int,
    response: Response,
    confirm: bool = Query(False, description="Set to true to confirm the deletion"),
    controller: TaskController = Depends(_get_controller),
) -> StateOut:
    if not confirm:
        return StateOut.from_state(controller.state)
    return _render(controller.delete(task_id), response)


# PUBLIC_INTERFACE
@router.post(
    "/import",
    response_model=StateOut,
    response_model_exclude_unset=True,
    summary="Import Backup",
    description="Replace the collection with the JSON array sent as the request body and reload.",
    responses={400: {"description": "Body is not a JSON array"}},
)
def import_backup(
    response: Response,
    raw: bytes = Depends(raw_body),
    controller: TaskController = Depends(_get_controller),
) -> StateOut:
    return _render(controller.import_tasks(raw), response)


# PUBLIC_INTERFACE
@router.post(
    "/clear",
    response_model=StateOut,
    response_model_exclude_unset=True,
    summary="Clear All",
    description="Delete every task.",
)
def clear(controller: TaskController = Depends(_get_controller)) -> StateOut:
    return StateOut.from_state(controller.clear_all())
