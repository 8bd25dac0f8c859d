from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.backend.models.task import (
    Category,
    Priority,
    Task,
    TaskStatus,
    normalize_tags,
)
from app.backend.schemas.common import CamelModel

# dueDate만 null로 지울 수 있음
_NULLABLE_FIELDS = {"due_date"}


class TaskCreate(CamelModel):
    title: Optional[str] = Field(None, validate_default=True)
    description: Optional[str] = None
    priority: Priority = Priority.medium
    category: Category = Category.other
    due_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("Task title is required")
        return v.strip()

    @field_validator("description")
    @classmethod
    def _trim_description(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: List[str]) -> List[str]:
        return normalize_tags(v)


class TaskPatch(CamelModel):
    """
    Allow-listed partial update. Unknown keys (id, userId, createdAt ...) are dropped,
    so owner and id can never be changed through an update.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    category: Optional[Category] = None
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None
    tags: Optional[List[str]] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Task title cannot be empty")
        return v.strip()

    @field_validator("description")
    @classmethod
    def _trim_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return normalize_tags(v) if v is not None else v

    def changes(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name not in _NULLABLE_FIELDS:
                continue
            out[name] = value
        return out


class TaskOut(CamelModel):
    id: int
    user_id: int
    title: str
    description: str
    priority: Priority
    category: Category
    due_date: Optional[datetime] = None
    completed: bool
    tags: List[str]
    created_at: datetime
    updated_at: datetime
    status: TaskStatus
    is_overdue: bool

    @classmethod
    def from_task(cls, task: Task, now: Optional[datetime] = None) -> "TaskOut":
        return cls(
            id=task.id,
            user_id=task.user_id,
            title=task.title,
            description=task.description,
            priority=task.priority,
            category=task.category,
            due_date=task.due_date,
            completed=task.completed,
            tags=list(task.tags),
            created_at=task.created_at,
            updated_at=task.updated_at,
            status=task.status,
            is_overdue=task.is_overdue(now),
        )


class TaskList(CamelModel):
    tasks: List[TaskOut]
    total: int
    user_id: int


class ClearResult(CamelModel):
    deleted: int


class CategoryCount(CamelModel):
    total: int = 0
    completed: int = 0


class TaskStats(CamelModel):
    total: int
    completed: int
    pending: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_category: Dict[str, CategoryCount]
    overdue: int
    due_soon: int
