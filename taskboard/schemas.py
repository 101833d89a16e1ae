import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import Priority, TaskStatus


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class SignupRequest(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

def _parse_due_date(value):
    """Accept ISO dates or datetimes; an empty string means no due date."""
    if value is None or isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if len(value) == 10:
            return datetime.datetime.combine(datetime.date.fromisoformat(value), datetime.time())
    return value


def _to_utc_naive(value):
    """Stored datetimes are naive UTC; convert aware values instead of dropping the offset."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


class TaskCreate(_CamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    due_date: Optional[datetime.datetime] = None
    priority: Priority
    category: str = Field(min_length=1)
    status: TaskStatus = TaskStatus.PENDING

    @field_validator("due_date", mode="before")
    @classmethod
    def _coerce_due_date(cls, value):
        return _parse_due_date(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_in_utc(cls, value):
        return _to_utc_naive(value)


class TaskPatch(_CamelModel):
    """Partial update: only fields present in the request body are written.

    `description` and `dueDate` may be sent as null to clear them; the other
    fields must carry a value when present.
    """

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    due_date: Optional[datetime.datetime] = None
    priority: Optional[Priority] = None
    category: Optional[str] = Field(default=None, min_length=1)
    status: Optional[TaskStatus] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def _coerce_due_date(cls, value):
        return _parse_due_date(value)

    @field_validator("due_date")
    @classmethod
    def _due_date_in_utc(cls, value):
        return _to_utc_naive(value)

    @field_validator("title", "priority", "category", "status")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    def changes(self) -> dict:
        """Return {attribute: value} for the fields present in the payload."""
        data = self.model_dump(exclude_unset=True)
        for key in ("priority", "status"):
            if key in data:
                data[key] = data[key].value
        return data


class TaskOut(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    title: str
    description: Optional[str]
    due_date: Optional[datetime.datetime]
    priority: str
    category: str
    status: str
    created_at: datetime.datetime
    user_id: str


class BulkDeleteRequest(BaseModel):
    ids: list[str]


class StatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    completed: int
    pending: int


class TaskListResponse(BaseModel):
    tasks: list[TaskOut]
    total: int
    stats: StatsOut
    categories: list[str]

