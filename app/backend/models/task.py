from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


PRIORITY_RANK = {
    Priority.low: 0,
    Priority.medium: 1,
    Priority.high: 2,
    Priority.urgent: 3,
}


class Category(str, Enum):
    work = "work"
    personal = "personal"
    study = "study"
    health = "health"
    finance = "finance"
    shopping = "shopping"
    other = "other"


class TaskStatus(str, Enum):
    pending = "pending"
    completed = "completed"


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    return sorted({t.strip() for t in (tags or []) if t and t.strip()})


class Task(BaseModel):
    id: int
    user_id: int
    title: str
    description: str = ""
    priority: Priority = Priority.medium
    category: Category = Category.other
    due_date: Optional[datetime] = None
    completed: bool = False
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def status(self) -> TaskStatus:
        return TaskStatus.completed if self.completed else TaskStatus.pending

    def is_overdue(self, now: Optional[datetime] = None) -> bool:
        if self.completed or self.due_date is None:
            return False
        return as_aware(self.due_date) < (now or utcnow())


def as_aware(value: datetime) -> datetime:
    """Naive datetimes from clients are taken as UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
