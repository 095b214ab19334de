from __future__ import annotations

from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Optional

from .errors import DuplicateError
from .filters import DateRange, FilterBy, FilterSpec, OrderBy
from .models import NewTask, TaskEntity
from .settings import Settings, get_settings

# Wire column name -> TaskEntity key
ENTITY_FIELDS = {"name": "name", "completed": "completed", "dueDate": "due_date"}


def duplicated_name(name: str) -> DuplicateError:
    return DuplicateError(f"Duplicated task name '{name}'")


def duplicated_due_date() -> DuplicateError:
    return DuplicateError("Cannot schedule two tasks for the same time")


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract repository contract for task storage backends.

    Backends enforce name and due date uniqueness themselves and raise
    DuplicateError on a collision; use cases pre-check for friendlier
    messages, but the store is the final authority.
    """

    @abstractmethod
    def create_task(self, task: NewTask) -> TaskEntity:
        """Persist a new task and return it with its assigned id."""

    @abstractmethod
    def get_task_by_name(self, name: str) -> Optional[TaskEntity]:
        """Return the task with exactly this name, or None."""

    @abstractmethod
    def get_task_by_due_date(self, due_date: str) -> Optional[TaskEntity]:
        """Return the task with exactly this canonical due date, or None."""

    @abstractmethod
    def delete_task(self, task_id: int) -> Optional[TaskEntity]:
        """Delete a task by id. Return the deleted task, or None if not found."""

    @abstractmethod
    def update_task(self, task_id: int, task: NewTask) -> Optional[TaskEntity]:
        """Replace every field of an existing task. Return it, or None if not found."""

    @abstractmethod
    def list_tasks(self, spec: Optional[FilterSpec] = None) -> List[TaskEntity]:
        """
        Return the tasks matching spec.filter, ordered by spec.order_by.
        - name: case-insensitive substring match
        - completed: exact match
        - dueDate: inclusive range; tasks without a due date never match
        - ordering ties are broken by id ascending; without order_by, id order
        """


def _matches(flt: FilterBy) -> Callable[[TaskEntity], bool]:
    if flt.column == "name":
        needle = str(flt.value).lower()
        return lambda t: needle in t["name"].lower()
    if flt.column == "completed":
        return lambda t: t["completed"] == flt.value
    rng = flt.value
    assert isinstance(rng, DateRange)
    return lambda t: t["due_date"] is not None and rng.from_ <= t["due_date"] <= rng.to


def _sort_key(order: OrderBy) -> Callable[[TaskEntity], Any]:
    field = ENTITY_FIELDS[order.column]
    if field == "due_date":
        # Tasks without a due date sort first, as NULLs do in SQLite
        return lambda t: (t["due_date"] is not None, t["due_date"] or "")
    return lambda t: t[field]


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[int, TaskEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def _check_unique(self, task: NewTask, task_id: Optional[int] = None) -> None:
        others = [t for t in self._items.values() if t["id"] != task_id]
        # Name clashes are reported before due date clashes
        if any(t["name"] == task.name for t in others):
            raise duplicated_name(task.name)
        if task.due_date is not None and any(t["due_date"] == task.due_date for t in others):
            raise duplicated_due_date()

    def create_task(self, task: NewTask) -> TaskEntity:
        with self._lock:
            self._check_unique(task)
            entity: TaskEntity = {
                "id": self._allocate_id(),
                "name": task.name,
                "completed": task.completed,
                "due_date": task.due_date,
            }
            self._items[entity["id"]] = entity
            return entity.copy()

    def _find(self, field: str, value: Any) -> Optional[TaskEntity]:
        with self._lock:
            for item in self._items.values():
                if item[field] == value:  # type: ignore[literal-required]
                    return item.copy()
            return None

    def get_task_by_name(self, name: str) -> Optional[TaskEntity]:
        return self._find("name", name)

    def get_task_by_due_date(self, due_date: str) -> Optional[TaskEntity]:
        return self._find("due_date", due_date)

    def delete_task(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            return self._items.pop(task_id, None)

    def update_task(self, task_id: int, task: NewTask) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                return None
            self._check_unique(task, task_id)

            updated: TaskEntity = {
                "id": task_id,
                "name": task.name,
                "completed": task.completed,
                "due_date": task.due_date,
            }
            self._items[task_id] = updated
            return updated.copy()

    def list_tasks(self, spec: Optional[FilterSpec] = None) -> List[TaskEntity]:
        q = spec or FilterSpec()
        with self._lock:
            items: Iterable[TaskEntity] = sorted(self._items.values(), key=lambda t: t["id"])

            if q.filter is not None:
                keep = _matches(q.filter)
                items = [t for t in items if keep(t)]

            # Stable sorts applied from the last term to the first
            ordered = list(items)
            for order in reversed(q.order_by or ()):
                ordered.sort(key=_sort_key(order), reverse=order.decreasing)

            # Return copies to avoid external mutation
            return [t.copy() for t in ordered]


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Build the repository configured in settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository at settings.sqlite_db_path

    Call once at startup and share the instance; see main.create_app.
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()

