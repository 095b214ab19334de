from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A stored Task as returned by every repository backend.

    Fields:
    - id: Unique integer identifier assigned by the store
    - name: Task name, unique across all tasks
    - completed: Boolean completion flag
    - due_date: Optional due timestamp, canonical ISO8601 UTC string
      ('YYYY-MM-DDTHH:MM:SS.mmmZ'), unique across all tasks when set
    """

    id: int
    name: str
    completed: bool
    due_date: Optional[str]


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class NewTask:
    """Validated task fields, not yet persisted. Build it with entities.validate_task."""

    name: str
    completed: bool = False
    due_date: Optional[str] = None
