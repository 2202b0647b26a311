from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from src.api.validators import (
    normalize_status,
    parse_identifier,
    parse_log_date,
    parse_optional_identifier,
    require_text,
)


class MessageResponse(BaseModel):
    """Plain message response"""
    message: str


# Users

class RegisterRequest(BaseModel):
    """Request model to register a new user"""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., description="Plaintext password")
    name: str = Field(..., description="Display name")

    @field_validator("password")
    @classmethod
    def _password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("password is required")
        return v

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        return require_text(v, "name")


class LoginRequest(BaseModel):
    """Request model to log in with email and password"""
    email: str = Field(..., description="User email")
    password: str = Field(..., description="Plaintext password")

    @field_validator("email")
    @classmethod
    def _email_required(cls, v: str) -> str:
        return require_text(v, "email")

    @field_validator("password")
    @classmethod
    def _password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("password is required")
        return v


class UserResponse(BaseModel):
    """User response without sensitive fields"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    created_at: datetime
    updated_at: datetime


# Projects

class ProjectWriteRequest(BaseModel):
    """Create or fully replace a project"""
    name: str = Field(..., description="Project name")
    description: str = Field("", description="Project description")

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        return require_text(v, "name")


class ProjectCreateRequest(ProjectWriteRequest):
    pass


class ProjectUpdateRequest(ProjectWriteRequest):
    pass


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    description: str
    created_at: datetime
    updated_at: datetime


# Tasks

class TaskCreateRequest(BaseModel):
    """Create task request; status defaults to todo"""
    project_id: str = Field(..., description="Owning project id")
    title: str = Field(..., description="Task title")
    description: str = Field("", description="Task description")
    status: Optional[str] = Field(None, validate_default=True, description="todo, in_progress or done")

    @field_validator("project_id")
    @classmethod
    def _project_id_format(cls, v: str) -> str:
        return parse_identifier(v, "project_id")

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        return require_text(v, "title")

    @field_validator("status")
    @classmethod
    def _status_known(cls, v: Optional[str]) -> str:
        return normalize_status(v)


class TaskUpdateRequest(BaseModel):
    """Full replacement of a task's mutable fields"""
    title: str = Field(..., description="Task title")
    description: str = Field("", description="Task description")
    status: Optional[str] = Field(None, validate_default=True, description="todo, in_progress or done")

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        return require_text(v, "title")

    @field_validator("status")
    @classmethod
    def _status_known(cls, v: Optional[str]) -> str:
        return normalize_status(v)


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    project_id: str
    title: str
    description: str
    status: str
    created_at: datetime
    updated_at: datetime


# Log entries

class LogEntryCreateRequest(BaseModel):
    """Create log entry request; log_date defaults to now"""
    task_id: Optional[str] = Field(None, description="Optional task id")
    project_id: Optional[str] = Field(None, description="Optional project id")
    content: str = Field(..., description="What was done")
    log_date: Optional[date] = Field(None, description="YYYY-MM-DD")

    @field_validator("task_id", "project_id")
    @classmethod
    def _optional_id_format(cls, v: Optional[str], info) -> Optional[str]:
        return parse_optional_identifier(v, info.field_name)

    @field_validator("content")
    @classmethod
    def _content_required(cls, v: str) -> str:
        return require_text(v, "content")

    @field_validator("log_date", mode="before")
    @classmethod
    def _log_date_format(cls, v):
        if v is None or v == "":
            return None
        return parse_log_date(v)


class LogEntryUpdateRequest(BaseModel):
    """Full replacement of a log entry's content and date"""
    content: str = Field(..., description="What was done")
    log_date: date = Field(..., description="YYYY-MM-DD")

    @field_validator("content")
    @classmethod
    def _content_required(cls, v: str) -> str:
        return require_text(v, "content")

    @field_validator("log_date", mode="before")
    @classmethod
    def _log_date_format(cls, v):
        return parse_log_date(v)


class LogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    task_id: Optional[str] = None
    project_id: Optional[str] = None
    content: str
    log_date: datetime
    created_at: datetime
    updated_at: datetime
