"""Wire schemas for procedure inputs and outputs.

Field names are snake_case in Python and camelCase on the wire; both spellings
are accepted on input.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from taskboard.models import DEFAULT_CATEGORY_COLOR, get_utc_now

Priority = Literal["low", "medium", "high"]
BCRYPT_MAX_BYTES = 72


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class InputModel(WireModel):
    model_config = ConfigDict(extra="forbid")


# auth


class RegisterInput(InputModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=2)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str):
        # bcrypt refuses anything longer than 72 bytes
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError("Password too long")
        return value


class LoginInput(InputModel):
    email: EmailStr
    password: str


class UserSummary(WireModel):
    id: int
    email: str
    name: str


class AuthResult(WireModel):
    user: UserSummary
    token: str


# tasks


class TaskFilter(InputModel):
    completed: bool | None = None
    category_id: int | None = None


class TaskCreate(InputModel):
    """Schema for creating a task"""

    title: str = Field(min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=500)
    priority: Priority = "medium"
    due_date: datetime | None = None
    category_id: int | None = None

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, value: datetime | None):
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        if value <= get_utc_now():
            raise ValueError("Due date must be in the future")
        return value


class TaskUpdate(InputModel):
    """Schema for updating a task - all fields but id optional"""

    id: int
    title: str | None = Field(default=None, min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=500)
    completed: bool | None = None
    priority: Priority | None = None
    due_date: datetime | None = None
    category_id: int | None = None

    @field_validator("title", "completed", "priority")
    @classmethod
    def not_null(cls, value):
        # these columns are NOT NULL, leave the field out instead
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class TaskDelete(InputModel):
    id: int


class TaskRead(WireModel):
    id: int
    user_id: int
    title: str
    description: str | None = None
    priority: Priority
    completed: bool
    due_date: datetime | None = None
    category_id: int | None = None
    created_at: datetime
    updated_at: datetime


class TaskWithStatus(TaskRead):
    status: Literal["completed", "pending"]


class DeleteResult(WireModel):
    success: bool = True


# categories


class CategoryCreate(InputModel):
    name: str = Field(min_length=1, max_length=100)
    color: str = Field(default=DEFAULT_CATEGORY_COLOR, pattern=r"^#[0-9A-Fa-f]{6}$")


class CategoryRead(WireModel):
    id: int
    user_id: int
    name: str
    color: str


# health / status


class HealthStatus(WireModel):
    status: Literal["ok", "degraded"]
    timestamp: str
    uptime: float
    database: bool


class TaskStatusSummary(WireModel):
    total: int
    total_completed: int
    total_pending: int
    total_tasks: list[TaskWithStatus]
    completed: list[TaskWithStatus]
    pending: list[TaskWithStatus]
