from datetime import date, datetime, timezone
from enum import Enum

from pydantic import field_validator
from sqlmodel import Field, SQLModel


def get_utc_now():
    """Helper function to get current UTC time with timezone"""
    return datetime.now(timezone.utc)


def sanitize_text(value):
    if isinstance(value, str):
        return value.strip().replace("<", "").replace(">", "")
    return value


class TaskStatus(str, Enum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Task(SQLModel):
    """A task as stored by the API and mirrored in the client cache"""

    id: str
    title: str
    description: str
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None
    created_at: datetime = Field(default_factory=get_utc_now)
    updated_at: datetime = Field(default_factory=get_utc_now)


class TaskCreate(SQLModel):
    """Schema for creating a task"""

    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=1000)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def _sanitize(cls, value):
        return sanitize_text(value)

    @field_validator("due_date")
    @classmethod
    def _not_in_past(cls, value: date | None):
        if value is not None and value < date.today():
            raise ValueError("Due date cannot be in the past")
        return value


class TaskUpdate(SQLModel):
    """Schema for updating a task - all fields optional"""

    title: str | None = Field(default=None, min_length=3, max_length=200)
    description: str | None = Field(default=None, min_length=10, max_length=1000)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def _sanitize(cls, value):
        return sanitize_text(value)

    @field_validator("due_date")
    @classmethod
    def _not_in_past(cls, value: date | None):
        if value is not None and value < date.today():
            raise ValueError("Due date cannot be in the past")
        return value

    def changes(self, mode: str = "python") -> dict:
        """Fields the caller actually supplied, nulls excluded."""
        return self.model_dump(mode=mode, exclude_unset=True, exclude_none=True)


class TaskResponse(SQLModel):
    data: Task


class TaskListResponse(SQLModel):
    data: list[Task]


class MessageResponse(SQLModel):
    message: str
