from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from app.backend.core.errors import ValidationError
from app.backend.models.task import Category, Priority, Task
from app.backend.services.task_query import TaskFilter, query_tasks, sort_tasks, task_stats

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def make_task(task_id: int, user_id: int = 1, **fields) -> Task:
    fields.setdefault("title", f"task {task_id}")
    fields.setdefault("created_at", NOW - timedelta(hours=100 - task_id))
    fields.setdefault("updated_at", fields["created_at"])
    return Task(id=task_id, user_id=user_id, **fields)


def ids(tasks):
    return [t.id for t in tasks]


def test_results_only_contain_owner_tasks():
    rows = [make_task(1, user_id=1), make_task(2, user_id=2), make_task(3, user_id=1)]

    assert set(ids(query_tasks(rows, owner_id=1))) == {1, 3}
    assert ids(query_tasks(rows, owner_id=3)) == []


def test_default_order_is_newest_first():
    rows = [make_task(1), make_task(2), make_task(3)]

    assert ids(query_tasks(rows, owner_id=1)) == [3, 2, 1]


def test_search_matches_title_or_description_case_insensitively():
    rows = [
        make_task(1, title="Write Docs"),
        make_task(2, title="Deploy", description="update the DOCUMENTATION"),
        make_task(3, title="Groceries"),
    ]
    f = TaskFilter.from_params(search="doc", sort_by="title", sort_order="asc")

    assert ids(query_tasks(rows, 1, f)) == [2, 1]


def test_filters_are_anded():
    rows = [
        make_task(1, priority=Priority.high, category=Category.work),
        make_task(2, priority=Priority.high, category=Category.personal),
        make_task(3, priority=Priority.low, category=Category.work),
        make_task(4, priority=Priority.high, category=Category.work, completed=True),
    ]
    f = TaskFilter.from_params(priority="high", category="work", status="pending")

    assert ids(query_tasks(rows, 1, f)) == [1]


def test_status_all_and_tag_filter():
    rows = [make_task(1, tags=["home"]), make_task(2, completed=True, tags=["home", "urgent"]), make_task(3)]

    assert set(ids(query_tasks(rows, 1, TaskFilter.from_params(status="all")))) == {1, 2, 3}
    assert set(ids(query_tasks(rows, 1, TaskFilter.from_params(tag="home")))) == {1, 2}


@pytest.mark.parametrize("order", ["asc", "desc"])
def test_equal_keys_keep_ascending_id_in_both_directions(order):
    rows = [
        make_task(5, priority=Priority.medium),
        make_task(2, priority=Priority.medium),
        make_task(9, priority=Priority.urgent),
        make_task(4, priority=Priority.medium),
    ]

    result = ids(sort_tasks(rows, "priority", order))

    if order == "asc":
        assert result == [2, 4, 5, 9]
    else:
        assert result == [9, 2, 4, 5]


def test_priority_sort_uses_rank_not_alphabet():
    rows = [
        make_task(1, priority=Priority.low),
        make_task(2, priority=Priority.urgent),
        make_task(3, priority=Priority.medium),
        make_task(4, priority=Priority.high),
    ]

    assert ids(sort_tasks(rows, "priority", "desc")) == [2, 4, 3, 1]


def test_due_date_sort_puts_undated_tasks_last():
    rows = [
        make_task(1),
        make_task(2, due_date=NOW + timedelta(days=2)),
        make_task(3, due_date=NOW + timedelta(days=1)),
        make_task(4),
    ]

    assert ids(sort_tasks(rows, "dueDate", "asc")) == [3, 2, 1, 4]
    assert ids(sort_tasks(rows, "dueDate", "desc")) == [2, 3, 1, 4]


def test_naive_and_aware_due_dates_sort_together():
    rows = [
        make_task(1, due_date=datetime(2026, 3, 1)),
        make_task(2, due_date=datetime(2026, 2, 1, tzinfo=timezone.utc)),
    ]

    assert ids(sort_tasks(rows, "dueDate", "asc")) == [2, 1]


def test_unknown_filter_values_are_ignored_by_default():
    f = TaskFilter.from_params(status="bogus", priority="extreme", sort_by="color", sort_order="sideways")

    assert f.status is None
    assert f.priority is None
    assert f.sort_by == "createdAt"
    assert f.sort_order == "desc"


@pytest.mark.parametrize(
    "params",
    [
        {"status": "bogus"},
        {"priority": "extreme"},
        {"category": "hobby"},
        {"sort_by": "color"},
        {"sort_order": "sideways"},
    ],
)
def test_unknown_filter_values_rejected_in_strict_mode(params):
    with pytest.raises(ValidationError):
        TaskFilter.from_params(strict=True, **params)


def test_stats_counts():
    rows = [
        make_task(1, priority=Priority.high, category=Category.work),
        make_task(2, completed=True, category=Category.work),
        make_task(3, priority=Priority.urgent, due_date=NOW - timedelta(days=1)),
        make_task(4, due_date=NOW + timedelta(days=2)),
        make_task(5, due_date=NOW + timedelta(days=10)),
        make_task(6, completed=True, due_date=NOW - timedelta(days=3)),
    ]

    stats = task_stats(rows, now=NOW, due_soon_days=3)

    assert stats.total == 6
    assert stats.completed == 2
    assert stats.pending == 4
    assert stats.by_status == {"pending": 4, "completed": 2}
    assert stats.by_priority == {"low": 0, "medium": 4, "high": 1, "urgent": 1}
    assert stats.by_category["work"].total == 2
    assert stats.by_category["work"].completed == 1
    assert stats.by_category["other"].total == 4
    assert stats.overdue == 1
    assert stats.due_soon == 1


def test_stats_for_no_tasks():
    stats = task_stats([], now=NOW)

    assert stats.total == 0
    assert stats.pending == 0
    assert set(stats.by_category) == {c.value for c in Category}


def test_search_doc_example():
    rows = [make_task(1, title="Complete project documentation"), make_task(2, title="Review security")]

    result = query_tasks(rows, 1, TaskFilter.from_params(search="doc"))

    assert [t.title for t in result] == ["Complete project documentation"]
