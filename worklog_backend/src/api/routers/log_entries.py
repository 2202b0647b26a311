from datetime import datetime, time
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.orm import Session

from src.api.auth import get_current_user_id
from src.api.database import get_db
from src.api.errors import NotFound
from src.api.models import utcnow
from src.api.repository import LogEntryRepository, ProjectRepository, TaskRepository
from src.api.schemas import LogEntryCreateRequest, LogEntryResponse, LogEntryUpdateRequest
from src.api.validators import parse_identifier, parse_log_date, parse_optional_identifier

router = APIRouter(tags=["Log entries"])


def get_log_entries(db: Session = Depends(get_db)) -> LogEntryRepository:
    return LogEntryRepository(db)


def _start_of_day(day) -> datetime:
    return datetime.combine(day, time.min)


# PUBLIC_INTERFACE
@router.get("/log-entries", response_model=List[LogEntryResponse], summary="List log entries")
def list_log_entries(
    project_id: Optional[str] = Query(None, description="Only entries of this project"),
    owner_id: str = Depends(get_current_user_id),
    entries: LogEntryRepository = Depends(get_log_entries),
):
    """List the current user's log entries, latest log date first."""
    project_filter = parse_optional_identifier(project_id, "project_id")
    return [LogEntryResponse.model_validate(e) for e in entries.list(owner_id, project_id=project_filter)]


# PUBLIC_INTERFACE
@router.post(
    "/log-entries",
    response_model=LogEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a log entry",
)
def create_log_entry(
    payload: LogEntryCreateRequest,
    owner_id: str = Depends(get_current_user_id),
    entries: LogEntryRepository = Depends(get_log_entries),
    db: Session = Depends(get_db),
):
    """
    Record a log entry for the current user.

    Body:
        content: required, non-empty
        log_date: optional YYYY-MM-DD, defaults to now
        task_id / project_id: optional references to rows the caller owns

    Raises:
        404 if a referenced task or project does not exist or belongs to someone else.
    """
    if payload.task_id is not None and TaskRepository(db).get_by_id(payload.task_id, owner_id) is None:
        raise NotFound("Task not found")
    if payload.project_id is not None and ProjectRepository(db).get_by_id(payload.project_id, owner_id) is None:
        raise NotFound("Project not found")
    log_date = _start_of_day(payload.log_date) if payload.log_date is not None else utcnow()
    entry = entries.create(
        owner_id,
        content=payload.content,
        log_date=log_date,
        task_id=payload.task_id,
        project_id=payload.project_id,
    )
    return LogEntryResponse.model_validate(entry)


# PUBLIC_INTERFACE
@router.get("/log-entries/{entry_id}", response_model=LogEntryResponse, summary="Get a log entry by ID")
def get_log_entry(
    entry_id: str = Path(...),
    owner_id: str = Depends(get_current_user_id),
    entries: LogEntryRepository = Depends(get_log_entries),
):
    entry = entries.get_by_id(parse_identifier(entry_id), owner_id)
    if entry is None:
        raise NotFound("Log entry not found")
    return LogEntryResponse.model_validate(entry)


# PUBLIC_INTERFACE
@router.put("/log-entries/{entry_id}", response_model=LogEntryResponse, summary="Replace a log entry")
def update_log_entry(
    payload: LogEntryUpdateRequest,
    entry_id: str = Path(...),
    owner_id: str = Depends(get_current_user_id),
    entries: LogEntryRepository = Depends(get_log_entries),
):
    """Replace content and log date; both are required."""
    entry = entries.update(
        parse_identifier(entry_id),
        owner_id,
        content=payload.content,
        log_date=_start_of_day(payload.log_date),
    )
    if entry is None:
        raise NotFound("Log entry not found")
    return LogEntryResponse.model_validate(entry)


# PUBLIC_INTERFACE
@router.delete("/log-entries/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a log entry")
def delete_log_entry(
    entry_id: str = Path(...),
    owner_id: str = Depends(get_current_user_id),
    entries: LogEntryRepository = Depends(get_log_entries),
):
    if not entries.delete(parse_identifier(entry_id), owner_id):
        raise NotFound("Log entry not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.get("/today", response_model=List[LogEntryResponse], summary="Log entries for one day")
def today(
    date: Optional[str] = Query(None, description="Reference day, YYYY-MM-DD; defaults to today (UTC)"),
    owner_id: str = Depends(get_current_user_id),
    entries: LogEntryRepository = Depends(get_log_entries),
):
    """Entries logged on the reference day, most recently created first."""
    reference = parse_log_date(date, "date") if date else utcnow().date()
    return [LogEntryResponse.model_validate(e) for e in entries.today(owner_id, reference)]
