# app/backend/services/task_query.py
"""
Task query engine: filter, search and sort a user's tasks, plus the
statistics shown on the dashboard.

Ownership is applied first and unconditionally. Other filters are ANDed;
unset fields impose no constraint. Unknown filter values are ignored
(logged at DEBUG) unless ``strict`` is set, in which case they raise
``ValidationError``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from app.backend.core.errors import ValidationError
from app.backend.models.task import (
    PRIORITY_RANK,
    Category,
    Priority,
    Task,
    TaskStatus,
    as_aware,
    utcnow,
)
from app.backend.schemas.task import CategoryCount, TaskStats

logger = logging.getLogger(__name__)

SORT_KEYS = ("createdAt", "dueDate", "priority", "title")
SORT_ORDERS = ("asc", "desc")
DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_ORDER = "desc"


@dataclass
class TaskFilter:
    status: Optional[TaskStatus] = None
    priority: Optional[Priority] = None
    category: Optional[Category] = None
    search: Optional[str] = None
    tag: Optional[str] = None
    sort_by: str = DEFAULT_SORT_BY
    sort_order: str = DEFAULT_SORT_ORDER

    @classmethod
    def from_params(
        cls,
        *,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        strict: bool = False,
    ) -> "TaskFilter":
        def _enum(enum_cls, name: str, raw: Optional[str]):
            if raw is None or raw == "" or raw == "all":
                return None
            try:
                return enum_cls(raw)
            except ValueError:
                if strict:
                    raise ValidationError(f"Invalid {name} filter: {raw}")
                logger.debug("ignoring unknown %s filter value %r", name, raw)
                return None

        def _choice(name: str, raw: Optional[str], allowed, default: str) -> str:
            if raw is None or raw == "":
                return default
            if raw in allowed:
                return raw
            if strict:
                raise ValidationError(f"Invalid {name}: {raw}")
            logger.debug("ignoring unknown %s %r", name, raw)
            return default

        return cls(
            status=_enum(TaskStatus, "status", status),
            priority=_enum(Priority, "priority", priority),
            category=_enum(Category, "category", category),
            search=(search or "").strip() or None,
            tag=(tag or "").strip() or None,
            sort_by=_choice("sortBy", sort_by, SORT_KEYS, DEFAULT_SORT_BY),
            sort_order=_choice("sortOrder", sort_order, SORT_ORDERS, DEFAULT_SORT_ORDER),
        )


def _matches(task: Task, f: TaskFilter) -> bool:
    if f.status is not None and task.status != f.status:
        return False
    if f.priority is not None and task.priority != f.priority:
        return False
    if f.category is not None and task.category != f.category:
        return False
    if f.tag is not None and f.tag not in task.tags:
        return False
    if f.search:
        needle = f.search.lower()
        if needle not in task.title.lower() and needle not in (task.description or "").lower():
            return False
    return True


def _sort_value(task: Task, sort_by: str):
    if sort_by == "priority":
        return PRIORITY_RANK[task.priority]
    if sort_by == "title":
        return task.title.casefold()
    if sort_by == "dueDate":
        return as_aware(task.due_date)
    return as_aware(task.created_at)


def sort_tasks(tasks: Iterable[Task], sort_by: str = DEFAULT_SORT_BY, sort_order: str = DEFAULT_SORT_ORDER) -> List[Task]:
    # id order first; list.sort is stable (also with reverse=True), so equal
    # keys keep ascending id whatever the direction
    ordered = sorted(tasks, key=lambda t: t.id)
    reverse = sort_order == "desc"
    if sort_by == "dueDate":
        dated = [t for t in ordered if t.due_date is not None]
        undated = [t for t in ordered if t.due_date is None]
        dated.sort(key=lambda t: _sort_value(t, sort_by), reverse=reverse)
        return dated + undated
    ordered.sort(key=lambda t: _sort_value(t, sort_by), reverse=reverse)
    return ordered


def query_tasks(tasks: Iterable[Task], owner_id: int, task_filter: Optional[TaskFilter] = None) -> List[Task]:
    f = task_filter or TaskFilter()
    owned = (t for t in tasks if t.user_id == owner_id)
    matched = [t for t in owned if _matches(t, f)]
    return sort_tasks(matched, f.sort_by, f.sort_order)


def task_stats(tasks: Iterable[Task], now: Optional[datetime] = None, due_soon_days: int = 3) -> TaskStats:
    now = now or utcnow()
    soon = now + timedelta(days=due_soon_days)

    by_priority: Dict[str, int] = {p.value: 0 for p in Priority}
    by_category: Dict[str, CategoryCount] = {c.value: CategoryCount() for c in Category}
    total = completed = overdue = due_soon = 0

    for t in tasks:
        total += 1
        by_priority[t.priority.value] += 1
        bucket = by_category[t.category.value]
        bucket.total += 1
        if t.completed:
            completed += 1
            bucket.completed += 1
            continue
        if t.due_date is None:
            continue
        due = as_aware(t.due_date)
        if due < now:
            overdue += 1
        elif due <= soon:
            due_soon += 1

    pending = total - completed
    return TaskStats(
        total=total,
        completed=completed,
        pending=pending,
        by_status={TaskStatus.pending.value: pending, TaskStatus.completed.value: completed},
        by_priority=by_priority,
        by_category=by_category,
        overdue=overdue,
        due_soon=due_soon,
    )
