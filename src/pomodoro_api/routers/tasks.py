from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ..errors import BadRequestError, NotFoundError
from ..repositories import Repository, get_repository
from ..schemas import TaskCreate, TaskOut, TaskUpdate, task_out

router = APIRouter(
    prefix="/api/tasks",
    tags=["tasks"],
)

INVALID_STATUS_MESSAGE = "Invalid status parameter. Use 'active' or 'archived'."
TASK_NOT_FOUND = "Task not found"

# status query value -> archived flag filter
_STATUS_FILTERS = {"active": False, "archived": True}


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new, unarchived task and return it.",
    responses={
        201: {"description": "Task created successfully"},
        400: {"description": "Validation error"},
    },
)
def create_task(
    payload: TaskCreate, response: Response, repo: Repository = Depends(_get_repo)
) -> TaskOut:
    """
    Create a new task and point the Location header at it.
    """
    created = task_out(repo.create_task(payload))
    response.headers["Location"] = f"{router.prefix}/{created.id}"
    return created


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TaskOut],
    summary="List Tasks",
    description=(
        "List tasks ordered by id.\n\n"
        "Query parameters:\n"
        "- status: 'active' (not archived) or 'archived'; omit for all tasks"
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid status parameter"},
    },
)
def list_tasks(
    status_filter: Optional[str] = Query(
        None, alias="status", description="'active' or 'archived' (case-insensitive)"
    ),
    repo: Repository = Depends(_get_repo),
) -> List[TaskOut]:
    """
    List tasks, optionally filtered by archive state.
    """
    archived: Optional[bool] = None
    if status_filter is not None:
        key = status_filter.strip().lower()
        if key not in _STATUS_FILTERS:
            raise BadRequestError(INVALID_STATUS_MESSAGE)
        archived = _STATUS_FILTERS[key]
    return [task_out(t) for t in repo.list_tasks(archived=archived)]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    description="Get a single task by ID.",
    responses={
        200: {"description": "Task found"},
        404: {"description": "Task not found"},
    },
)
def get_task(task_id: int, repo: Repository = Depends(_get_repo)) -> TaskOut:
    """
    Retrieve a single task by its ID.
    """
    item = repo.get_task(task_id)
    if not item:
        raise NotFoundError(TASK_NOT_FOUND)
    return task_out(item)


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Update Task",
    description=(
        "Replace the title, note, estimate and archived flag of a task. Omitted optional "
        "fields are cleared; an omitted isArchived un-archives the task."
    ),
    responses={
        200: {"description": "Task updated"},
        400: {"description": "Validation error"},
        404: {"description": "Task not found"},
    },
)
def update_task(task_id: int, payload: TaskUpdate, repo: Repository = Depends(_get_repo)) -> TaskOut:
    """
    Full-field update of a task. id and createdAt never change.
    """
    updated = repo.update_task(task_id, payload)
    if not updated:
        raise NotFoundError(TASK_NOT_FOUND)
    return task_out(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Task",
    description="Delete a task and all of its sessions.",
    responses={
        204: {"description": "Task deleted"},
        404: {"description": "Task not found"},
    },
)
def delete_task(task_id: int, repo: Repository = Depends(_get_repo)) -> None:
    """
    Delete a task. Returns 204 on success, 404 if not found.
    """
    if not repo.delete_task(task_id):
        raise NotFoundError(TASK_NOT_FOUND)
    return None
