from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import TaskEntity
from .utils import format_timestamp, to_utc

MISSING_CREATE_FIELDS = "Missing required fields: title, status, and dueDate are required."
INVALID_DUE_DATE = "Invalid date format for dueDate. Use ISO 8601 format (YYYY-MM-DDTHH:mm:ss.sssZ)."
INVALID_DESCRIPTION = "Invalid value for description: must be a string."
MISSING_STATUS = "Missing required field: status is required."
INVALID_TASK_ID = "Invalid task ID provided."

# Incoming dueDate can be an ISO 8601 string, epoch milliseconds, or an already parsed value
DueDateInput = Union[date, datetime, str, int, float]

# Leading base-10 integer; anything after the digits is ignored ("12abc" -> 12).
_TASK_ID_RE = re.compile(r"^\s*([+-]?[0-9]+)")

_ISO_DATETIME_RE = re.compile(
    r"^(?P<date>[0-9]{4}-[0-9]{2}-[0-9]{2})"
    r"(?:[T ](?P<hm>[0-9]{2}:[0-9]{2})(?::(?P<sec>[0-9]{2})(?:\.(?P<frac>[0-9]+))?)?"
    r"(?P<tz>Z|z|[+-][0-9]{2}:[0-9]{2})?)?$"
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _parse_iso_string(value: str) -> datetime:
    m = _ISO_DATETIME_RE.match(value.strip())
    if m is None:
        raise ValueError(f"not an ISO 8601 date or datetime: {value!r}")

    # Date only: midnight UTC
    if m.group("hm") is None:
        d = date.fromisoformat(m.group("date"))
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)

    frac = (m.group("frac") or "").ljust(6, "0")[:6]
    tz = m.group("tz")
    offset = "+00:00" if tz is None or tz in ("Z", "z") else tz
    normalized = f"{m.group('date')}T{m.group('hm')}:{m.group('sec') or '00'}.{frac}{offset}"
    return datetime.fromisoformat(normalized)


# PUBLIC_INTERFACE
def parse_due_date(value: Optional[DueDateInput]) -> datetime:
    """
    Normalize a dueDate input into an aware UTC datetime.

    - str: ISO 8601 date ('2024-12-31') or datetime ('2024-12-31T23:59:59.000Z');
      values without an offset are UTC, date-only values are midnight UTC.
    - int/float: milliseconds since the Unix epoch.
    - date/datetime: converted to UTC.

    Raises:
        ValueError: if the value cannot be read as a calendar date/time.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("dueDate must be a date string or a timestamp")

    if isinstance(value, datetime):
        return to_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        try:
            return to_utc(_EPOCH + timedelta(milliseconds=value))
        except (OverflowError, ValueError) as e:  # includes NaN and inf
            raise ValueError(f"timestamp out of range: {value!r}") from e

    if isinstance(value, str):
        try:
            return to_utc(_parse_iso_string(value))
        except OverflowError as e:
            raise ValueError(f"date out of range: {value!r}") from e

    raise ValueError(f"unsupported type for dueDate: {type(value).__name__}")


# PUBLIC_INTERFACE
def parse_task_id(raw: Any) -> int:
    """
    Parse a path id into an integer.

    Raises:
        ValidationError: when the value does not start with an integer.
    """
    if isinstance(raw, bool):
        raise ValidationError(INVALID_TASK_ID)
    if isinstance(raw, int):
        return raw
    m = _TASK_ID_RE.match(raw) if isinstance(raw, str) else None
    if m is None:
        raise ValidationError(INVALID_TASK_ID)
    return int(m.group(1))


def _present_string(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _present(value: Any) -> bool:
    # JSON values that count as "not provided": missing/null, "", false, 0
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)) and value == 0:
        return False
    return value != ""


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Validated input for creating a task.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Write report",
                "description": "Quarterly numbers",
                "status": "To Do",
                "dueDate": "2024-12-31T23:59:59.000Z",
            }
        },
    )

    title: str = Field(..., min_length=1, description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: str = Field(..., min_length=1, description="Status label, any non-empty string")
    due_date: datetime = Field(
        ...,
        alias="dueDate",
        description="Due date/time. Accepts an ISO 8601 date or datetime; stored as UTC",
    )

    @field_validator("due_date", mode="before")
    @classmethod
    def normalize_due_date(cls, v: Optional[DueDateInput]) -> datetime:
        """
        Normalize dueDate from str/number/date/datetime to an aware UTC datetime.
        """
        return parse_due_date(v)


# PUBLIC_INTERFACE
class StatusUpdate(BaseModel):
    """
    Validated input for the status update operation.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"status": "Done"}})

    status: str = Field(..., min_length=1, description="New status label")


# PUBLIC_INTERFACE
def parse_task_create(payload: Mapping[str, Any]) -> TaskCreate:
    """
    Map an untyped request body onto TaskCreate.

    Raises:
        ValidationError: with the exact client-facing message for missing
        fields, a bad dueDate, or a non-string description.
    """
    title = payload.get("title")
    status = payload.get("status")
    raw_due = payload.get("dueDate")

    # A present but non-string title or status is reported as missing: it
    # cannot be stored in a string column.
    if not (_present_string(title) and _present_string(status) and _present(raw_due)):
        raise ValidationError(MISSING_CREATE_FIELDS)

    try:
        due_date = parse_due_date(raw_due)
    except ValueError as e:
        raise ValidationError(INVALID_DUE_DATE) from e

    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        raise ValidationError(INVALID_DESCRIPTION)

    try:
        return TaskCreate(title=title, description=description, status=status, due_date=due_date)
    except PydanticValidationError as e:
        # e.g. strings holding lone surrogates, which pydantic refuses
        fields = {err["loc"][0] for err in e.errors() if err["loc"]}
        message = INVALID_DESCRIPTION if fields == {"description"} else MISSING_CREATE_FIELDS
        raise ValidationError(message) from e


# PUBLIC_INTERFACE
def parse_status_update(payload: Mapping[str, Any]) -> StatusUpdate:
    """
    Map an untyped request body onto StatusUpdate.

    Raises:
        ValidationError: if status is missing, empty or not a string.
    """
    status = payload.get("status")
    if not _present_string(status):
        raise ValidationError(MISSING_STATUS)
    try:
        return StatusUpdate(status=status)
    except PydanticValidationError as e:
        raise ValidationError(MISSING_STATUS) from e


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task. Keys are camelCase on the wire and
    timestamps are ISO 8601 UTC with millisecond precision.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Write report",
                "description": "Quarterly numbers",
                "status": "To Do",
                "dueDate": "2024-12-31T23:59:59.000Z",
                "createdAt": "2024-12-01T10:15:30.123Z",
                "updatedAt": "2024-12-02T09:00:00.000Z",
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    status: str = Field(..., description="Status label")
    due_date: datetime = Field(..., alias="dueDate", description="Due date/time")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="Last update timestamp")

    @field_serializer("due_date", "created_at", "updated_at")
    def serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


# PUBLIC_INTERFACE
def serialize_task(entity: TaskEntity) -> Dict[str, Any]:
    """Render a TaskEntity as the JSON-ready response body."""
    return TaskOut(**entity).model_dump(by_alias=True)


# PUBLIC_INTERFACE
class ErrorOut(BaseModel):
    """
    Body of every error response.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"error": "Task not found."}})

    error: str = Field(..., description="Human-readable error message")
