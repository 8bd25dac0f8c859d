# app/backend/db/store.py
"""
Storage layer.

Handlers only see the abstract ``TaskStore`` / ``UserStore`` interfaces, handed out
by ``get_task_store`` / ``get_user_store`` (FastAPI Depends). The in-memory
implementations below live for the lifetime of the process; nothing is persisted.

Every method is synchronous and never awaits, so when called from ``async def``
handlers the event loop serialises access without explicit locking.
"""
from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import Request

from app.backend.models.task import Category, Priority, Task, normalize_tags, utcnow
from app.backend.models.user import User
from app.backend.schemas.task import TaskPatch

log = logging.getLogger(__name__)


class DuplicateUser(Exception):
    def __init__(self, field: str) -> None:
        super().__init__(f"{field} already registered")
        self.field = field


class TaskStore(ABC):
    @abstractmethod
    def create(
        self,
        *,
        user_id: int,
        title: str,
        description: str = "",
        priority: Priority = Priority.medium,
        category: Category = Category.other,
        due_date: Optional[datetime] = None,
        tags: Optional[List[str]] = None,
    ) -> Task: ...

    @abstractmethod
    def get(self, task_id: int) -> Optional[Task]: ...

    @abstractmethod
    def update(self, task_id: int, patch: TaskPatch) -> Optional[Task]: ...

    @abstractmethod
    def delete(self, task_id: int) -> bool: ...

    @abstractmethod
    def list_by_owner(self, user_id: int) -> List[Task]: ...

    @abstractmethod
    def delete_by_owner(self, user_id: int) -> int: ...

    @abstractmethod
    def count(self) -> int: ...


class UserStore(ABC):
    @abstractmethod
    def create(self, *, username: str, email: str, password_hash: str) -> User: ...

    @abstractmethod
    def get(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    def exists(self, *, username: str, email: str) -> bool: ...

    @abstractmethod
    def touch_login(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def set_active(self, user_id: int, active: bool) -> Optional[User]: ...

    @abstractmethod
    def count(self) -> int: ...


class InMemoryTaskStore(TaskStore):
    def __init__(self) -> None:
        self._tasks: Dict[int, Task] = {}
        self._ids = itertools.count(1)

    def create(
        self,
        *,
        user_id: int,
        title: str,
        description: str = "",
        priority: Priority = Priority.medium,
        category: Category = Category.other,
        due_date: Optional[datetime] = None,
        tags: Optional[List[str]] = None,
    ) -> Task:
        now = utcnow()
        task = Task(
            id=next(self._ids),
            user_id=user_id,
            title=title.strip(),
            description=(description or "").strip(),
            priority=priority,
            category=category,
            due_date=due_date,
            tags=normalize_tags(tags),
            created_at=now,
            updated_at=now,
        )
        self._tasks[task.id] = task
        log.debug("task created id=%s user=%s", task.id, user_id)
        return task.model_copy(deep=True)

    def get(self, task_id: int) -> Optional[Task]:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task else None

    def update(self, task_id: int, patch: TaskPatch) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        updated = task.model_copy(update=patch.changes(), deep=True)
        updated.updated_at = utcnow()
        self._tasks[task_id] = updated
        return updated.model_copy(deep=True)

    def delete(self, task_id: int) -> bool:
        return self._tasks.pop(task_id, None) is not None

    def list_by_owner(self, user_id: int) -> List[Task]:
        return [t.model_copy(deep=True) for t in self._tasks.values() if t.user_id == user_id]

    def delete_by_owner(self, user_id: int) -> int:
        ids = [tid for tid, t in self._tasks.items() if t.user_id == user_id]
        for tid in ids:
            del self._tasks[tid]
        return len(ids)

    def count(self) -> int:
        return len(self._tasks)


class InMemoryUserStore(UserStore):
    def __init__(self) -> None:
        self._users: Dict[int, User] = {}
        self._ids = itertools.count(1)

    def create(self, *, username: str, email: str, password_hash: str) -> User:
        for u in self._users.values():
            if u.email == email:
                raise DuplicateUser("email")
            if u.username == username:
                raise DuplicateUser("username")
        now = utcnow()
        user = User(
            id=next(self._ids),
            username=username,
            email=email,
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        self._users[user.id] = user
        return user.model_copy()

    def get(self, user_id: int) -> Optional[User]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    def get_by_email(self, email: str) -> Optional[User]:
        for u in self._users.values():
            if u.email == email:
                return u.model_copy()
        return None

    def exists(self, *, username: str, email: str) -> bool:
        return any(u.email == email or u.username == username for u in self._users.values())

    def touch_login(self, user_id: int) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None:
            return None
        now = utcnow()
        user.last_login_at = now
        user.updated_at = now
        return user.model_copy()

    def set_active(self, user_id: int, active: bool) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None:
            return None
        user.is_active = active
        user.updated_at = utcnow()
        return user.model_copy()

    def count(self) -> int:
        return len(self._users)


def get_task_store(request: Request) -> TaskStore:
    """FastAPI Depends(get_task_store)."""
    return request.app.state.task_store


def get_user_store(request: Request) -> UserStore:
    """FastAPI Depends(get_user_store)."""
    return request.app.state.user_store
