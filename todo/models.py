# todo/models.py
"""Task models: stored rows, write schemas, and the normalized read snapshot."""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import field_validator
from sqlmodel import Field, SQLModel

PLACEHOLDER_TITLE = "New Task"
DEFAULT_CATEGORY = "General"
ALL_CATEGORY = "All"
CATEGORIES: tuple[str, ...] = (ALL_CATEGORY, "Work", "Personal", "Errands", "Other")


class TaskPriority(int, Enum):
    low = 0
    medium = 1
    high = 2

    @property
    def title(self) -> str:
        return self.name.capitalize()


class TaskSortOption(str, Enum):
    due_date = "dueDate"
    priority = "priority"
    title = "title"
    created_at = "createdAt"

    @property
    def label(self) -> str:
        return _SORT_LABELS[self]


_SORT_LABELS = {
    TaskSortOption.due_date: "Due date",
    TaskSortOption.priority: "Priority",
    TaskSortOption.title: "Title",
    TaskSortOption.created_at: "Created time",
}


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo; stored timestamps are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_overdue(
    due_date: Optional[datetime],
    is_completed: bool,
    now: Optional[datetime] = None,
) -> bool:
    """An incomplete task whose due date lies in the past."""
    if due_date is None or is_completed:
        return False
    return as_utc(due_date) < (as_utc(now) if now else datetime.now(timezone.utc))


def _new_id() -> str:
    return str(uuid.uuid4())


class Item(SQLModel, table=True):
    """Stored task row.

    Every column except the key is nullable: rows written by older
    versions may lack any of them, and reads go through
    :mod:`todo.normalize` rather than trusting these values directly.
    """
    id: str = Field(default_factory=_new_id, primary_key=True)
    title: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    category: Optional[str] = Field(default=None)
    priority: Optional[int] = Field(default=None)
    due_date: Optional[datetime] = Field(default=None)
    is_completed: Optional[bool] = Field(default=None)
    created_at: Optional[datetime] = Field(default=None)
    updated_at: Optional[datetime] = Field(default=None)


class TaskCreate(SQLModel):
    """Field values for a new task. Defaults match a freshly added task."""
    title: str = PLACEHOLDER_TITLE
    notes: str = ""
    category: str = DEFAULT_CATEGORY
    priority: TaskPriority = TaskPriority.medium
    due_date: Optional[datetime] = None
    is_completed: bool = False

    @classmethod
    def for_category(cls, active_category: str) -> "TaskCreate":
        """New-task defaults under the given category filter."""
        if active_category == ALL_CATEGORY:
            return cls(category=DEFAULT_CATEGORY)
        return cls(category=active_category)


class TaskUpdate(SQLModel):
    """Schema for editing a task. Only explicitly set fields are written."""
    title: Optional[str] = None
    notes: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    is_completed: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        stripped = v.strip()
        if not stripped:
            raise ValueError("Title must not be empty")
        return stripped


@dataclass(frozen=True, slots=True)
class TaskRecord:
    """Normalized, read-only view of one task."""

    id: str
    title: str
    notes: str
    category: str
    priority: TaskPriority
    due_date: Optional[datetime]
    is_completed: bool
    created_at: datetime

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        """True for an open task whose due date has passed."""
        return is_overdue(self.due_date, self.is_completed, now)
