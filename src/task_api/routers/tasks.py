from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from ..entities import validate_task
from ..filters import parse_filter_spec
from ..repositories import Repository
from ..schemas import MessageOut, TaskIn, TaskOut
from ..use_cases import CreateTaskUseCase, DeleteTaskUseCase, ListTasksUseCase, UpdateTaskUseCase

router = APIRouter(
    prefix="/task",
    tags=["tasks"],
)

_ERRORS = {400: {"model": MessageOut, "description": "Invalid input or business rule violation"}}


def get_repository(request: Request) -> Repository:
    """
    The repository built once by create_app and kept in app.state.
    """
    return request.app.state.repository


def _not_found(task_id: int) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": f"Task with ID {task_id} doesn't exist"},
    )


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new Task and return it with its assigned id.",
    responses=_ERRORS,
)
def create_task(payload: TaskIn, repo: Repository = Depends(get_repository)) -> TaskOut:
    """
    Create a new Task.
    """
    task = validate_task(payload.name, payload.completed, payload.due_date)
    created = CreateTaskUseCase(repo).execute(task)
    return TaskOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TaskOut],
    summary="List Tasks",
    description=(
        "List tasks with optional ordering and filtering.\n\n"
        "Query parameters:\n"
        "- order: `column[,ASC|DESC]` terms joined by `;`, columns name, completed, dueDate\n"
        "- filter: one of `name=<substring>`, `completed=true|false`, `dueDate=<start>;<end>`"
    ),
    responses=_ERRORS,
)
def list_tasks(
    order: Optional[str] = Query(None, description="e.g. name;dueDate,DESC"),
    filter_: Optional[str] = Query(None, alias="filter", description="e.g. completed=true"),
    repo: Repository = Depends(get_repository),
) -> List[TaskOut]:
    """
    List Tasks, ordered and filtered by the query expressions.
    """
    spec = parse_filter_spec(order, filter_)
    return [TaskOut(**t) for t in ListTasksUseCase(repo).execute(spec)]


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskOut,
    summary="Replace Task",
    description=(
        "Replace an existing Task. Omitted fields are reset to their defaults "
        "(completed=false, dueDate=null)."
    ),
    responses=_ERRORS,
)
def update_task(
    task_id: int, payload: TaskIn, repo: Repository = Depends(get_repository)
) -> Union[TaskOut, JSONResponse]:
    """
    Full replace of a Task; 400 if the id does not exist.
    """
    task = validate_task(payload.name, payload.completed, payload.due_date)
    updated = UpdateTaskUseCase(repo).execute(task_id, task)
    if updated is None:
        return _not_found(task_id)
    return TaskOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
    summary="Delete Task",
    description="Delete a Task by ID.",
    responses=_ERRORS,
)
def delete_task(task_id: int, repo: Repository = Depends(get_repository)) -> Optional[JSONResponse]:
    """
    Delete a Task. Returns 204 on success, 400 if not found.
    """
    if DeleteTaskUseCase(repo).execute(task_id) is None:
        return _not_found(task_id)
    return None
