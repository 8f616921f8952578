from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .controller import ControllerState


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task.

    The title is checked by the task store (blank titles raise ValidationError),
    so the schema only requires it to be a string.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"title": "Buy milk"}})

    title: str = Field(..., description="Short title for the task")


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for partially updating a task.

    Only provided fields are merged onto the stored record. Unknown fields are
    accepted and stored as given.
    """

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={"example": {"title": "Buy oat milk", "completed": True}},
    )

    title: Optional[str] = Field(default=None, description="New title for the task")
    completed: Optional[bool] = Field(default=None, description="Completion status flag")

    def changes(self) -> Dict[str, Any]:
        """Return only the fields the client actually sent, extras included."""
        declared = type(self).model_fields
        data = {name: getattr(self, name) for name in self.model_fields_set if name in declared}
        data.update(self.model_extra or {})
        return data


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.

    Stored records are returned as they are: imported ones may lack fields,
    carry extra ones, or hold values of other types, so no field is coerced or
    required and extras are passed through.
    """

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123Z",
                "updated_at": "2025-01-25T10:15:30.123Z",
            }
        },
    )

    id: Any = Field(default=None, description="Unique identifier of the task (integer)")
    title: Any = Field(default=None, description="Short title for the task (string)")
    completed: Any = Field(default=None, description="Completion status flag (boolean)")
    created_at: Any = Field(default=None, description="Creation timestamp (ISO8601 string)")
    updated_at: Any = Field(default=None, description="Last update timestamp (ISO8601 string)")


class MessageOut(BaseModel):
    message: str = Field(..., description="Human-readable confirmation")


class CreateOut(BaseModel):
    message: str = Field(..., description="Human-readable confirmation")
    task: TaskOut = Field(..., description="The created task")


class ImportOut(BaseModel):
    message: str = Field(..., description="Human-readable confirmation")
    count: int = Field(..., description="Number of accepted tasks")
    tasks: List[TaskOut] = Field(..., description="The accepted tasks, now the whole collection")


class InputText(BaseModel):
    text: str = Field(..., description="Current text of the new-task input")


# PUBLIC_INTERFACE
class StateOut(BaseModel):
    """
    Controller state as seen by a client.
    """

    tasks: List[TaskOut] = Field(..., description="Tasks as currently shown, newest first after load/create")
    loading: bool = Field(..., description="True while an action is running")
    error: Optional[str] = Field(default=None, description="Message of the last failed action")
    error_code: Optional[str] = Field(default=None, description="Code of the last failed action")
    input_text: str = Field(..., description="Current text of the new-task input")

    @classmethod
    def from_state(cls, state: ControllerState) -> "StateOut":
        return cls(
            tasks=[TaskOut(**t) for t in state.tasks],
            loading=state.loading,
            error=state.error,
            error_code=state.error_code,
            input_text=state.input_text,
        )
