# app/backend/routers/task.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status

from app.backend.core.errors import AccessDenied, NotFound
from app.backend.db.store import TaskStore, get_task_store
from app.backend.dependencies.auth import Identity, get_current_user
from app.backend.models.task import Task, utcnow
from app.backend.schemas.common import Envelope
from app.backend.schemas.task import (
    ClearResult,
    TaskCreate,
    TaskList,
    TaskOut,
    TaskPatch,
    TaskStats,
)
from app.backend.services.task_query import TaskFilter, query_tasks, task_stats

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


def _owned_task(task_id: int, tasks: TaskStore, user: Identity) -> Task:
    task = tasks.get(task_id)
    if not task:
        raise NotFound("Task not found")
    if task.user_id != user.user_id:
        raise AccessDenied("Access denied")
    return task


@router.get("", response_model=Envelope[TaskList])
async def list_tasks(
    request: Request,
    status_: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    tasks: TaskStore = Depends(get_task_store),
    user: Identity = Depends(get_current_user),
):
    task_filter = TaskFilter.from_params(
        status=status_,
        priority=priority,
        category=category,
        search=search,
        tag=tag,
        sort_by=sort_by,
        sort_order=sort_order,
        strict=request.app.state.settings.strict_query_filters,
    )
    now = utcnow()
    rows = query_tasks(tasks.list_by_owner(user.user_id), user.user_id, task_filter)
    return Envelope(
        data=TaskList(
            tasks=[TaskOut.from_task(t, now) for t in rows],
            total=len(rows),
            user_id=user.user_id,
        )
    )


@router.post(
    "",
    response_model=Envelope[TaskOut],
    status_code=status.HTTP_201_CREATED,
)
async def create_task(
    body: TaskCreate,
    tasks: TaskStore = Depends(get_task_store),
    user: Identity = Depends(get_current_user),
):
    task = tasks.create(
        user_id=user.user_id,
        title=body.title,
        description=body.description,
        priority=body.priority,
        category=body.category,
        due_date=body.due_date,
        tags=body.tags,
    )
    return Envelope(message="Task created successfully", data=TaskOut.from_task(task))


@router.delete("", response_model=Envelope[ClearResult])
async def clear_tasks(
    tasks: TaskStore = Depends(get_task_store),
    user: Identity = Depends(get_current_user),
):
    deleted = tasks.delete_by_owner(user.user_id)
    return Envelope(message="All tasks deleted", data=ClearResult(deleted=deleted))


@router.get("/stats", response_model=Envelope[TaskStats])
async def get_stats(
    request: Request,
    tasks: TaskStore = Depends(get_task_store),
    user: Identity = Depends(get_current_user),
):
    stats = task_stats(
        tasks.list_by_owner(user.user_id),
        due_soon_days=request.app.state.settings.due_soon_days,
    )
    return Envelope(data=stats)


@router.get("/{task_id}", response_model=Envelope[TaskOut])
async def get_task(
    task_id: int,
    tasks: TaskStore = Depends(get_task_store),
    user: Identity = Depends(get_current_user),
):
    task = _owned_task(task_id, tasks, user)
    return Envelope(data=TaskOut.from_task(task))


@router.put("/{task_id}", response_model=Envelope[TaskOut])
async def update_task(
    task_id: int,
    patch: TaskPatch,
    tasks: TaskStore = Depends(get_task_store),
    user: Identity = Depends(get_current_user),
):
    _owned_task(task_id, tasks, user)
    task = tasks.update(task_id, patch)
    if task is None:
        raise NotFound("Task not found")
    return Envelope(message="Task updated successfully", data=TaskOut.from_task(task))


@router.patch("/{task_id}/toggle", response_model=Envelope[TaskOut])
async def toggle_task(
    task_id: int,
    tasks: TaskStore = Depends(get_task_store),
    user: Identity = Depends(get_current_user),
):
    current = _owned_task(task_id, tasks, user)
    task = tasks.update(task_id, TaskPatch(completed=not current.completed))
    if task is None:
        raise NotFound("Task not found")
    message = "Task marked as completed" if task.completed else "Task marked as pending"
    return Envelope(message=message, data=TaskOut.from_task(task))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: int,
    tasks: TaskStore = Depends(get_task_store),
    user: Identity = Depends(get_current_user),
):
    _owned_task(task_id, tasks, user)
    tasks.delete(task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
