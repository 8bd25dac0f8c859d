from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.backend.db.store import DuplicateUser, InMemoryTaskStore, InMemoryUserStore
from app.backend.models.task import Category, Priority
from app.backend.schemas.task import TaskPatch


@pytest.fixture
def tasks():
    return InMemoryTaskStore()


@pytest.fixture
def users():
    return InMemoryUserStore()


def test_create_assigns_increasing_ids_and_defaults(tasks):
    first = tasks.create(user_id=1, title="  Write docs  ")
    second = tasks.create(user_id=1, title="Ship")

    assert second.id > first.id
    assert first.title == "Write docs"
    assert first.priority is Priority.medium
    assert first.category is Category.other
    assert first.completed is False
    assert first.due_date is None
    assert first.created_at == first.updated_at


def test_ids_are_not_reused_after_delete(tasks):
    first = tasks.create(user_id=1, title="a")
    assert tasks.delete(first.id) is True

    again = tasks.create(user_id=1, title="b")

    assert again.id != first.id
    assert tasks.get(first.id) is None


def test_delete_missing_task_reports_false(tasks):
    assert tasks.delete(999) is False


def test_returned_tasks_are_copies(tasks):
    created = tasks.create(user_id=1, title="original", tags=["x"])
    created.title = "mutated"
    created.tags.append("y")

    stored = tasks.get(created.id)

    assert stored.title == "original"
    assert stored.tags == ["x"]


def test_update_cannot_change_owner_or_id(tasks):
    task = tasks.create(user_id=1, title="mine")
    patch = TaskPatch.model_validate({"id": 42, "userId": 2, "createdAt": "2000-01-01T00:00:00Z", "title": "renamed"})

    updated = tasks.update(task.id, patch)

    assert updated.id == task.id
    assert updated.user_id == 1
    assert updated.created_at == task.created_at
    assert updated.title == "renamed"
    assert updated.updated_at >= task.updated_at


def test_update_only_touches_given_fields(tasks):
    due = datetime(2030, 1, 1, tzinfo=timezone.utc)
    task = tasks.create(user_id=1, title="t", description="keep", priority=Priority.high, due_date=due)

    updated = tasks.update(task.id, TaskPatch(completed=True))

    assert updated.completed is True
    assert updated.description == "keep"
    assert updated.priority is Priority.high
    assert updated.due_date == due


def test_update_can_clear_due_date(tasks):
    task = tasks.create(user_id=1, title="t", due_date=datetime(2030, 1, 1, tzinfo=timezone.utc))

    updated = tasks.update(task.id, TaskPatch.model_validate({"dueDate": None}))

    assert updated.due_date is None


def test_update_missing_task_returns_none(tasks):
    assert tasks.update(5, TaskPatch(title="x")) is None


def test_list_and_delete_by_owner(tasks):
    tasks.create(user_id=1, title="a")
    tasks.create(user_id=1, title="b")
    tasks.create(user_id=2, title="c")

    assert {t.title for t in tasks.list_by_owner(1)} == {"a", "b"}
    assert tasks.delete_by_owner(1) == 2
    assert tasks.list_by_owner(1) == []
    assert tasks.count() == 1


def test_user_email_and_username_are_unique(users):
    users.create(username="alice", email="alice@example.com", password_hash="h")

    with pytest.raises(DuplicateUser) as email_dup:
        users.create(username="other", email="alice@example.com", password_hash="h")
    with pytest.raises(DuplicateUser) as name_dup:
        users.create(username="alice", email="other@example.com", password_hash="h")

    assert email_dup.value.field == "email"
    assert name_dup.value.field == "username"
    assert users.count() == 1


def test_touch_login_and_set_active(users):
    user = users.create(username="alice", email="alice@example.com", password_hash="h")
    assert user.last_login_at is None
    assert user.is_active is True

    touched = users.touch_login(user.id)
    disabled = users.set_active(user.id, False)

    assert touched.last_login_at is not None
    assert disabled.is_active is False
    assert users.get_by_email("alice@example.com").is_active is False
    assert users.touch_login(999) is None
