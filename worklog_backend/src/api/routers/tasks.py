from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.orm import Session

from src.api.auth import get_current_user_id
from src.api.database import get_db
from src.api.errors import NotFound
from src.api.repository import ProjectRepository, TaskRepository
from src.api.schemas import TaskCreateRequest, TaskResponse, TaskUpdateRequest
from src.api.validators import parse_identifier, parse_optional_identifier

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def get_tasks(db: Session = Depends(get_db)) -> TaskRepository:
    return TaskRepository(db)


# PUBLIC_INTERFACE
@router.get("", response_model=List[TaskResponse], summary="List tasks")
def list_tasks(
    project_id: Optional[str] = Query(None, description="Only tasks of this project"),
    owner_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_tasks),
):
    """List the current user's tasks, newest first, optionally for one project."""
    project_filter = parse_optional_identifier(project_id, "project_id")
    return [TaskResponse.model_validate(t) for t in tasks.list(owner_id, project_id=project_filter)]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
def create_task(
    payload: TaskCreateRequest,
    owner_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_tasks),
    db: Session = Depends(get_db),
):
    """
    Create a task in one of the current user's projects.

    Body:
        project_id: id of a project owned by the caller
        title: required, non-empty
        description: optional
        status: todo (default), in_progress or done

    Raises:
        404 if the project does not exist or belongs to someone else.
    """
    if ProjectRepository(db).get_by_id(payload.project_id, owner_id) is None:
        raise NotFound("Project not found")
    task = tasks.create(
        owner_id,
        project_id=payload.project_id,
        title=payload.title,
        description=payload.description,
        status=payload.status,
    )
    return TaskResponse.model_validate(task)


# PUBLIC_INTERFACE
@router.get("/{task_id}", response_model=TaskResponse, summary="Get a task by ID")
def get_task(
    task_id: str = Path(...),
    owner_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_tasks),
):
    task = tasks.get_by_id(parse_identifier(task_id), owner_id)
    if task is None:
        raise NotFound("Task not found")
    return TaskResponse.model_validate(task)


# PUBLIC_INTERFACE
@router.put("/{task_id}", response_model=TaskResponse, summary="Replace a task")
def update_task(
    payload: TaskUpdateRequest,
    task_id: str = Path(...),
    owner_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_tasks),
):
    """Replace title, description and status. The project stays the same."""
    task = tasks.update(
        parse_identifier(task_id),
        owner_id,
        title=payload.title,
        description=payload.description,
        status=payload.status,
    )
    if task is None:
        raise NotFound("Task not found")
    return TaskResponse.model_validate(task)


# PUBLIC_INTERFACE
@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a task")
def delete_task(
    task_id: str = Path(...),
    owner_id: str = Depends(get_current_user_id),
    tasks: TaskRepository = Depends(get_tasks),
):
    if not tasks.delete(parse_identifier(task_id), owner_id):
        raise NotFound("Task not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
