from __future__ import annotations

from conftest import auth_headers, make_settings, register


def create(client, headers, **fields):
    fields.setdefault("title", "Task")
    resp = client.post("/api/tasks", json=fields, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def test_create_task_defaults(client, alice):
    resp = client.post("/api/tasks", json={"title": "  Write docs "}, headers=alice)

    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Task created successfully"
    task = body["data"]
    assert task["title"] == "Write docs"
    assert task["description"] == ""
    assert task["priority"] == "medium"
    assert task["category"] == "other"
    assert task["completed"] is False
    assert task["status"] == "pending"
    assert task["dueDate"] is None
    assert task["isOverdue"] is False


def test_create_task_requires_title(client, alice):
    missing = client.post("/api/tasks", json={"description": "x"}, headers=alice)
    blank = client.post("/api/tasks", json={"title": "   "}, headers=alice)

    assert missing.status_code == 400
    assert missing.json()["error"] == "Task title is required"
    assert blank.status_code == 400


def test_create_task_rejects_unknown_priority(client, alice):
    resp = client.post("/api/tasks", json={"title": "x", "priority": "extreme"}, headers=alice)

    assert resp.status_code == 400
    assert resp.json()["details"][0]["field"] == "priority"


def test_users_only_see_their_own_tasks(client, alice, bob):
    a1 = create(client, alice, title="A1")
    create(client, alice, title="A2")
    create(client, bob, title="B1")

    listed = client.get("/api/tasks", headers=alice).json()["data"]
    assert [t["title"] for t in listed["tasks"]] == ["A2", "A1"]
    assert listed["total"] == 2

    other = client.get(f"/api/tasks/{a1['id']}", headers=bob)
    assert other.status_code == 403
    assert other.json()["error"] == "Access denied"

    assert client.delete(f"/api/tasks/{a1['id']}", headers=bob).status_code == 403
    assert client.put(f"/api/tasks/{a1['id']}", json={"title": "x"}, headers=bob).status_code == 403
    assert client.get(f"/api/tasks/{a1['id']}", headers=alice).json()["data"]["title"] == "A1"


def test_missing_task_is_404(client, alice):
    for method in ("get", "delete"):
        resp = getattr(client, method)("/api/tasks/999", headers=alice)
        assert resp.status_code == 404
        assert resp.json()["error"] == "Task not found"
    assert client.patch("/api/tasks/999/toggle", headers=alice).status_code == 404


def test_update_ignores_identity_fields(client, alice, bob):
    task = create(
        client, alice, title="mine", description="keep me", category="study", dueDate="2030-05-01T09:00:00Z"
    )

    resp = client.put(
        f"/api/tasks/{task['id']}",
        json={"id": 999, "userId": 12345, "title": "renamed", "priority": "urgent", "tags": ["b", "a", "a"]},
        headers=alice,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Task updated successfully"
    updated = body["data"]
    assert updated["id"] == task["id"]
    assert updated["userId"] == task["userId"]
    assert updated["title"] == "renamed"
    assert updated["priority"] == "urgent"
    assert updated["tags"] == ["a", "b"]

    stored = client.get(f"/api/tasks/{task['id']}", headers=alice).json()["data"]
    assert stored["title"] == "renamed"
    assert stored["priority"] == "urgent"
    assert stored["userId"] == task["userId"]
    assert stored["description"] == task["description"] == "keep me"
    assert stored["category"] == task["category"] == "study"
    assert stored["dueDate"] == task["dueDate"]
    assert stored["createdAt"] == task["createdAt"]
    assert stored["completed"] is False
    assert client.get("/api/tasks", headers=bob).json()["data"]["total"] == 0


def test_update_rejects_blank_title(client, alice):
    task = create(client, alice)

    resp = client.put(f"/api/tasks/{task['id']}", json={"title": ""}, headers=alice)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Task title cannot be empty"


def test_toggle_flips_completion(client, alice):
    task = create(client, alice)

    first = client.patch(f"/api/tasks/{task['id']}/toggle", headers=alice).json()
    second = client.patch(f"/api/tasks/{task['id']}/toggle", headers=alice).json()

    assert first["data"]["completed"] is True
    assert first["data"]["status"] == "completed"
    assert first["message"] == "Task marked as completed"
    assert second["data"]["completed"] is False
    assert second["message"] == "Task marked as pending"


def test_delete_task(client, alice):
    task = create(client, alice)

    resp = client.delete(f"/api/tasks/{task['id']}", headers=alice)

    assert resp.status_code == 204
    assert resp.content == b""
    assert client.get(f"/api/tasks/{task['id']}", headers=alice).status_code == 404


def test_clear_all_only_removes_own_tasks(client, alice, bob):
    create(client, alice)
    create(client, alice)
    create(client, bob)

    resp = client.delete("/api/tasks", headers=alice)

    assert resp.json()["data"] == {"deleted": 2}
    assert client.get("/api/tasks", headers=alice).json()["data"]["total"] == 0
    assert client.get("/api/tasks", headers=bob).json()["data"]["total"] == 1


def test_list_filters_search_and_sort(client, alice):
    create(client, alice, title="Write docs", priority="high", category="work")
    create(client, alice, title="Buy milk", priority="low", category="shopping", tags=["home"])
    create(client, alice, title="Review", description="read the docs", priority="urgent", category="work")

    def titles(**params):
        resp = client.get("/api/tasks", params=params, headers=alice)
        assert resp.status_code == 200
        return [t["title"] for t in resp.json()["data"]["tasks"]]

    assert titles(search="DOC", sortBy="title", sortOrder="asc") == ["Review", "Write docs"]
    assert titles(category="work", sortBy="priority", sortOrder="desc") == ["Review", "Write docs"]
    assert titles(tag="home") == ["Buy milk"]
    assert titles(sortBy="priority", sortOrder="asc") == ["Buy milk", "Write docs", "Review"]
    # unknown values are ignored
    assert len(titles(status="bogus", sortBy="color")) == 3


def test_strict_filters_reject_unknown_values():
    from fastapi.testclient import TestClient

    from app.backend.main import create_app

    client = TestClient(create_app(make_settings(strict_query_filters=True)))
    headers = auth_headers(register(client, "alice")["token"])

    resp = client.get("/api/tasks", params={"status": "bogus"}, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid status filter: bogus"


def test_stats_endpoint(client, alice):
    done = create(client, alice, priority="high", category="work")
    create(client, alice, priority="urgent", dueDate="2000-01-01T00:00:00Z")
    client.patch(f"/api/tasks/{done['id']}/toggle", headers=alice)

    stats = client.get("/api/tasks/stats", headers=alice).json()["data"]

    assert stats["total"] == 2
    assert stats["completed"] == 1
    assert stats["pending"] == 1
    assert stats["byStatus"] == {"pending": 1, "completed": 1}
    assert stats["byPriority"]["urgent"] == 1
    assert stats["byCategory"]["work"] == {"total": 1, "completed": 1}
    assert stats["overdue"] == 1
    assert stats["dueSoon"] == 0


def test_overdue_flag_on_task(client, alice):
    task = create(client, alice, dueDate="2000-01-01T00:00:00Z")

    assert task["isOverdue"] is True


def test_task_of_a_is_invisible_to_b(client, alice, bob):
    create(client, alice, title="Only mine")

    mine = client.get("/api/tasks", headers=alice).json()["data"]["tasks"]
    theirs = client.get("/api/tasks", headers=bob).json()["data"]["tasks"]

    assert len(mine) == 1
    assert mine[0]["completed"] is False
    assert theirs == []
