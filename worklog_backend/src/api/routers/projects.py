from typing import List

from fastapi import APIRouter, Depends, Path, Response, status
from sqlalchemy.orm import Session

from src.api.auth import get_current_user_id
from src.api.database import get_db
from src.api.errors import NotFound
from src.api.repository import ProjectRepository
from src.api.schemas import ProjectCreateRequest, ProjectResponse, ProjectUpdateRequest
from src.api.validators import parse_identifier

router = APIRouter(prefix="/projects", tags=["Projects"])


def get_projects(db: Session = Depends(get_db)) -> ProjectRepository:
    return ProjectRepository(db)


# PUBLIC_INTERFACE
@router.get("", response_model=List[ProjectResponse], summary="List projects")
def list_projects(
    owner_id: str = Depends(get_current_user_id),
    projects: ProjectRepository = Depends(get_projects),
):
    """List the current user's projects, newest first."""
    return [ProjectResponse.model_validate(p) for p in projects.list(owner_id)]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
def create_project(
    payload: ProjectCreateRequest,
    owner_id: str = Depends(get_current_user_id),
    projects: ProjectRepository = Depends(get_projects),
):
    """
    Create a project owned by the current user.

    Body:
        name: required, non-empty
        description: optional
    """
    project = projects.create(owner_id, name=payload.name, description=payload.description)
    return ProjectResponse.model_validate(project)


# PUBLIC_INTERFACE
@router.get("/{project_id}", response_model=ProjectResponse, summary="Get a project by ID")
def get_project(
    project_id: str = Path(...),
    owner_id: str = Depends(get_current_user_id),
    projects: ProjectRepository = Depends(get_projects),
):
    """Retrieve a single project. Only the owner can see it."""
    project = projects.get_by_id(parse_identifier(project_id), owner_id)
    if project is None:
        raise NotFound("Project not found")
    return ProjectResponse.model_validate(project)


# PUBLIC_INTERFACE
@router.put("/{project_id}", response_model=ProjectResponse, summary="Replace a project")
def update_project(
    payload: ProjectUpdateRequest,
    project_id: str = Path(...),
    owner_id: str = Depends(get_current_user_id),
    projects: ProjectRepository = Depends(get_projects),
):
    """Replace name and description. Only the owner can modify it."""
    project = projects.update(
        parse_identifier(project_id), owner_id, name=payload.name, description=payload.description
    )
    if project is None:
        raise NotFound("Project not found")
    return ProjectResponse.model_validate(project)


# PUBLIC_INTERFACE
@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a project")
def delete_project(
    project_id: str = Path(...),
    owner_id: str = Depends(get_current_user_id),
    projects: ProjectRepository = Depends(get_projects),
):
    """Delete a project together with its tasks. Only the owner can delete it."""
    if not projects.delete(parse_identifier(project_id), owner_id):
        raise NotFound("Project not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
