import re
import uuid
from datetime import date, datetime
from typing import Optional

from src.api.errors import ValidationError
from src.api.models import TASK_STATUSES, DEFAULT_TASK_STATUS

LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_identifier(value) -> bool:
    """True when value is a UUID-shaped string."""
    if not isinstance(value, str) or not value:
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


# PUBLIC_INTERFACE
def parse_identifier(value, field: str = "id") -> str:
    """
    Validate an identifier taken from a path segment, query parameter or body.

    Returns the canonical lowercase hyphenated form so it compares equal to stored ids.

    Raises:
        ValidationError if the value is not a well-formed identifier.
    """
    if not is_identifier(value):
        raise ValidationError(field, f"Invalid {field}: must be a UUID")
    return str(uuid.UUID(value))


def parse_optional_identifier(value, field: str) -> Optional[str]:
    """Like parse_identifier, but None and "" mean no association."""
    if value is None or value == "":
        return None
    return parse_identifier(value, field)


# PUBLIC_INTERFACE
def parse_log_date(value, field: str = "log_date") -> date:
    """
    Parse a calendar date in YYYY-MM-DD form.

    Raises:
        ValidationError on any other format.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # strptime alone would accept "2024-1-5"
    if not isinstance(value, str) or not LOG_DATE_PATTERN.match(value):
        raise ValidationError(field, "Invalid log date format. Use YYYY-MM-DD")
    try:
        return datetime.strptime(value, LOG_DATE_FORMAT).date()
    except ValueError:
        raise ValidationError(field, "Invalid log date format. Use YYYY-MM-DD")


def require_text(value, field: str) -> str:
    """Strip surrounding whitespace and reject empty values."""
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(field, f"{field} is required")
    return text


def normalize_status(value) -> str:
    """Empty or missing status defaults to todo; anything else must be a known status."""
    if value is None or value == "":
        return DEFAULT_TASK_STATUS
    if value not in TASK_STATUSES:
        raise ValidationError("status", f"status must be one of: {', '.join(TASK_STATUSES)}")
    return value


def normalize_email(value: str) -> str:
    """Canonical stored form of an email: trimmed, domain lowercased."""
    local, sep, domain = value.strip().rpartition("@")
    if not sep:
        return value.strip()
    return f"{local}@{domain.lower()}"
