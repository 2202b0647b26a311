import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """
    Base class for errors that map to an HTTP response.

    Every error carries a stable machine-readable `reason` and a human-readable `message`.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.reason, "message": self.message}


class ValidationError(AppError, ValueError):
    """
    Malformed or missing client input.

    Also a ValueError so pydantic field validators report it against the offending field.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    reason = "validation_error"

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["field"] = self.field
        return body


class Unauthenticated(AppError):
    """No session, or an expired, revoked, or tampered one."""
    status_code = status.HTTP_401_UNAUTHORIZED
    reason = "unauthenticated"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFound(AppError):
    """No row for (id, owner). Never distinguishes rows owned by someone else."""
    status_code = status.HTTP_404_NOT_FOUND
    reason = "not_found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    reason = "conflict"


class StoreError(AppError):
    """Backing store failure. The client only ever sees an opaque message."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    reason = "store_error"

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


def _field_from_loc(loc) -> str:
    # loc looks like ("body", "title") or ("query", "project_id"); ("body",) for a broken body
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) if parts else "body"


def _clean_message(msg: str) -> str:
    # pydantic prefixes custom validator messages with "Value error, "
    prefix = "Value error, "
    return msg[len(prefix):] if msg.startswith(prefix) else msg


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first: Optional[dict] = errors[0] if errors else None
    if first is None:
        error = ValidationError("body", "Invalid request body")
    elif first.get("type") == "json_invalid":
        error = ValidationError("body", "Invalid request body")
    else:
        error = ValidationError(_field_from_loc(first.get("loc", ())), _clean_message(first.get("msg", "Invalid value")))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    error = StoreError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# PUBLIC_INTERFACE
def register_error_handlers(app: FastAPI) -> None:
    """Attach the error taxonomy to the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
