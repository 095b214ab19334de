from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# PUBLIC_INTERFACE
class TaskIn(BaseModel):
    """
    Request body for creating or replacing a Task.

    Fields are deliberately untyped here: entities.validate_task owns the
    rules and their error messages, so a wrong type must reach it instead of
    being rejected by pydantic.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "Buy groceries",
                "completed": False,
                "dueDate": "2030-02-01T09:30:00.000Z",
            }
        },
    )

    name: Any = Field(default=None, description="Task name, required and unique")
    completed: Any = Field(default=False, description="Completion status flag (boolean)")
    due_date: Any = Field(
        default=None,
        alias="dueDate",
        description="Optional ISO8601 date or datetime, unique, not before today (UTC)",
    )


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a Task.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 123,
                "name": "Buy groceries",
                "completed": False,
                "dueDate": "2030-02-01T09:30:00.000Z",
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the task")
    name: str = Field(..., description="Task name")
    completed: bool = Field(..., description="Completion status flag")
    due_date: Optional[str] = Field(
        default=None, alias="dueDate", description="Due date as an ISO8601 UTC timestamp"
    )


class MessageOut(BaseModel):
    """Error body for every 4xx/5xx response."""

    message: str = Field(..., description="Human readable error message")
