from __future__ import annotations

from typing import List, Optional

from loguru import logger

from .entities import parse_due_date
from .errors import DuplicateError
from .filters import FilterSpec
from .models import NewTask, TaskEntity
from .repositories import Repository, duplicated_due_date, duplicated_name


def localize_due_date(due_date: str) -> str:
    """Render a canonical due date as 'M/D/YYYY, h:MM:SS AM' (UTC)."""
    dt = parse_due_date(due_date)
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt.month}/{dt.day}/{dt.year}, {hour}:{dt.minute:02d}:{dt.second:02d} {meridiem}"


class CreateTaskUseCase:
    def __init__(self, repository: Repository):
        self.repository = repository

    def execute(self, task: NewTask) -> TaskEntity:
        """
        Store a new task.

        Raises:
            DuplicateError if another task has the same name, or the same due date.
        """
        if self.repository.get_task_by_name(task.name):
            logger.info("Rejected task '{}': duplicated name", task.name)
            raise duplicated_name(task.name)

        if task.due_date is not None and self.repository.get_task_by_due_date(task.due_date):
            logger.info("Rejected task '{}': due date {} taken", task.name, task.due_date)
            raise duplicated_due_date()

        created = self.repository.create_task(task)
        logger.info("Created task {}", created["id"])
        return created


class DeleteTaskUseCase:
    def __init__(self, repository: Repository):
        self.repository = repository

    def execute(self, task_id: int) -> Optional[TaskEntity]:
        """Delete a task; None means no task had that id."""
        deleted = self.repository.delete_task(task_id)
        if deleted is not None:
            logger.info("Deleted task {}", task_id)
        return deleted


class UpdateTaskUseCase:
    """
    Replace all fields of an existing task.

    The new values are a full NewTask: fields the client left out have
    already been reset to their defaults by the validator.
    """

    def __init__(self, repository: Repository):
        self.repository = repository

    def execute(self, task_id: int, task: NewTask) -> Optional[TaskEntity]:
        same_name = self.repository.get_task_by_name(task.name)
        if same_name and same_name["id"] != task_id:
            raise DuplicateError(f"Task with name '{task.name}' already existis")

        if task.due_date is not None:
            same_due = self.repository.get_task_by_due_date(task.due_date)
            if same_due and same_due["id"] != task_id:
                raise DuplicateError(f"Due date {localize_due_date(task.due_date)} already exists.")

        updated = self.repository.update_task(task_id, task)
        if updated is not None:
            logger.info("Updated task {}", task_id)
        return updated


class ListTasksUseCase:
    def __init__(self, repository: Repository):
        self.repository = repository

    def execute(self, spec: Optional[FilterSpec] = None) -> List[TaskEntity]:
        # Ordering and filtering belong to the repository
        return self.repository.list_tasks(spec)
