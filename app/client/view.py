# app/client/view.py
"""
Task view.

State flows one way: an intent (``set_filter``, ``toggle``, ``submit_form`` ...)
updates ``ViewState`` and/or calls the controller, then ``render()`` rebuilds
every fragment from state plus fresh controller data. Rendered items carry
``data-action`` / ``data-task-id`` attributes; the page posts those back as
events and ``dispatch`` routes them to the matching intent.

The view never keeps task data of its own between renders.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import Any, Callable, Dict, List, Mapping, Optional

from app.client.controller import Result, TaskController

PRIORITY_FILTERS = ("urgent", "high", "medium", "low")

CATEGORY_LABELS = {
    "work": "Work",
    "personal": "Personal",
    "study": "Study",
    "health": "Health",
    "finance": "Finance",
    "shopping": "Shopping",
    "other": "Other",
}


@dataclass
class Message:
    text: str
    kind: str = "info"  # success | error | info | warning


@dataclass
class ViewState:
    filter: str = "all"
    sort_by: str = "createdAt"
    sort_order: str = "desc"
    search: str = ""
    category: Optional[str] = None
    editing_task_id: Optional[int] = None
    form: Dict[str, Any] = field(default_factory=dict)
    messages: List[Message] = field(default_factory=list)


def _format_date(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return value


class TaskView:
    def __init__(
        self,
        controller: TaskController,
        confirm: Callable[[str], bool] = lambda _msg: True,
    ) -> None:
        self.controller = controller
        self.confirm = confirm
        self.state = ViewState()

    # ------------------------------------------------------------------ intents
    def show_message(self, text: str, kind: str = "info") -> None:
        self.state.messages.append(Message(text=text, kind=kind))

    def _report(self, result: Result) -> bool:
        if result.success:
            if result.message:
                self.show_message(result.message, "success")
            return True
        self.show_message(result.error or "Something went wrong", "error")
        return False

    def set_filter(self, name: str) -> Dict[str, str]:
        self.state.filter = name or "all"
        self.state.category = None
        return self.render()

    def set_sort(self, value: str) -> Dict[str, str]:
        sort_by, _, sort_order = value.partition("-")
        self.state.sort_by = sort_by or "createdAt"
        self.state.sort_order = sort_order or "desc"
        return self.render()

    def search(self, query: str) -> Dict[str, str]:
        self.state.search = (query or "").strip()
        return self.render()

    def filter_by_category(self, category: str) -> Dict[str, str]:
        self.state.category = category
        self.state.filter = "category"
        return self.render()

    def submit_form(self, form: Mapping[str, Any]) -> Dict[str, str]:
        tags = form.get("tags") or ""
        task_data = {
            "title": (form.get("title") or "").strip(),
            "description": (form.get("description") or "").strip(),
            "category": form.get("category") or "other",
            "priority": form.get("priority") or "medium",
            "dueDate": form.get("dueDate") or None,
            "tags": [t.strip() for t in tags.split(",")] if isinstance(tags, str) else list(tags),
        }
        if self.state.editing_task_id is not None:
            result = self.controller.update_task(self.state.editing_task_id, task_data)
        else:
            result = self.controller.create_task(task_data)

        if self._report(result):
            self._reset_form()
        else:
            self.state.form = dict(form)
        return self.render()

    def edit(self, task_id: int) -> Dict[str, str]:
        result = self.controller.get_task(task_id)
        if not self._report(result):
            return self.render()
        task = result.data
        self.state.editing_task_id = task["id"]
        self.state.form = {
            "title": task["title"],
            "description": task.get("description") or "",
            "category": task["category"],
            "priority": task["priority"],
            "dueDate": task.get("dueDate") or "",
            "tags": ", ".join(task.get("tags") or []),
        }
        return self.render()

    def cancel_edit(self) -> Dict[str, str]:
        self._reset_form()
        self.show_message("Edit cancelled", "info")
        return self.render()

    def _reset_form(self) -> None:
        self.state.editing_task_id = None
        self.state.form = {}

    def toggle(self, task_id: int) -> Dict[str, str]:
        self._report(self.controller.toggle_task_status(task_id))
        return self.render()

    def delete(self, task_id: int) -> Dict[str, str]:
        found = self.controller.get_task(task_id)
        if not found.success:
            self._report(found)
            return self.render()
        if self.confirm(f'Delete task "{found.data["title"]}"?'):
            if self._report(self.controller.delete_task(task_id)) and self.state.editing_task_id == task_id:
                self._reset_form()
        return self.render()

    def clear_all(self) -> Dict[str, str]:
        if self.confirm("Delete all tasks? This cannot be undone."):
            self._report(self.controller.delete_all_tasks())
        return self.render()

    def dispatch(self, event: Mapping[str, Any]) -> Dict[str, str]:
        action = event.get("action")
        task_id = event.get("taskId")
        value = event.get("value")

        def _task_id() -> int:
            try:
                return int(task_id)
            except (TypeError, ValueError):
                raise ValueError(f"View action {action!r} needs a numeric taskId, got {task_id!r}") from None

        handlers: Dict[str, Callable[[], Dict[str, str]]] = {
            "toggle": lambda: self.toggle(_task_id()),
            "edit": lambda: self.edit(_task_id()),
            "delete": lambda: self.delete(_task_id()),
            "cancel-edit": self.cancel_edit,
            "filter": lambda: self.set_filter(value),
            "sort": lambda: self.set_sort(value),
            "search": lambda: self.search(value),
            "category": lambda: self.filter_by_category(value),
            "submit": lambda: self.submit_form(event.get("form") or {}),
            "clear-all": self.clear_all,
        }
        handler = handlers.get(action)
        if handler is None:
            raise ValueError(f"Unknown view action: {action!r}")
        return handler()

    # ------------------------------------------------------------------ render
    def render(self) -> Dict[str, str]:
        return {
            "taskForm": self.render_form(),
            "taskList": self.render_tasks(),
            "taskStats": self.render_stats(),
            "categoryStats": self.render_category_stats(),
            "messages": self.render_messages(),
        }

    def _filter_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"sort_by": self.state.sort_by, "sort_order": self.state.sort_order}
        if self.state.filter in PRIORITY_FILTERS:
            options["priority"] = self.state.filter
        elif self.state.filter not in ("all", "category"):
            options["status"] = self.state.filter
        return options

    def render_tasks(self) -> str:
        options = self._filter_options()
        if self.state.search:
            result = self.controller.search_tasks(self.state.search, **options)
            empty = (
                f'<p>No tasks found for "{escape(self.state.search)}"</p>'
                "<small>Try a different keyword</small>"
            )
        elif self.state.category:
            result = self.controller.get_tasks_by_category(self.state.category, **options)
            empty = (
                f"<p>No tasks found in {escape(self.state.category)} category</p>"
                "<small>Create your first task using the form above</small>"
            )
        else:
            result = self.controller.get_tasks(**options)
            empty = "<p>No tasks yet</p><small>Create your first task using the form above</small>"

        if not result.success:
            self.show_message(result.error or "Failed to load tasks", "error")
            return ""
        if not result.data:
            return f'<div class="empty-state">{empty}</div>'
        return "".join(self._task_html(t) for t in result.data)

    def _task_html(self, task: Mapping[str, Any]) -> str:
        classes = ["task-item", f"priority-{task['priority']}"]
        if task["completed"]:
            classes.append("completed")
        if task.get("isOverdue"):
            classes.append("overdue")

        category = task["category"]
        description = (
            f'<p class="task-description">{escape(task["description"])}</p>' if task.get("description") else ""
        )
        tags = "".join(f'<span class="tag">{escape(t)}</span>' for t in task.get("tags") or [])
        due = _format_date(task.get("dueDate"))
        due_html = (
            f'<small class="{"overdue-text" if task.get("isOverdue") else ""}">Due: {due}</small>' if due else ""
        )
        toggle_title = "Mark incomplete" if task["completed"] else "Mark complete"
        toggle_icon = "↶" if task["completed"] else "✓"

        return (
            f'<div class="{" ".join(classes)}" data-task-id="{task["id"]}">'
            '<div class="task-content">'
            '<div class="task-header">'
            f'<h3 class="task-title">{escape(task["title"])}</h3>'
            '<div class="task-badges">'
            f'<span class="task-priority badge-{task["priority"]}">{task["priority"]}</span>'
            f'<span class="task-category category-{category}">{CATEGORY_LABELS.get(category, escape(category))}</span>'
            f'<span class="task-status badge-status">{task["status"]}</span>'
            "</div></div>"
            f"{description}"
            f'<div class="task-tags">{tags}</div>'
            f'<div class="task-meta"><small>Created: {_format_date(task.get("createdAt"))}</small>{due_html}</div>'
            "</div>"
            '<div class="task-actions">'
            f'<button class="btn btn-toggle" data-action="toggle" data-task-id="{task["id"]}" '
            f'title="{toggle_title}">{toggle_icon}</button>'
            f'<button class="btn btn-edit" data-action="edit" data-task-id="{task["id"]}" title="Edit task">✏️</button>'
            f'<button class="btn btn-delete" data-action="delete" data-task-id="{task["id"]}" '
            'title="Delete task">🗑️</button>'
            "</div></div>"
        )

    def render_form(self) -> str:
        form = self.state.form
        editing = self.state.editing_task_id is not None

        def _val(name: str) -> str:
            return escape(str(form.get(name) or ""), quote=True)

        def _options(name: str, choices, default: str) -> str:
            current = form.get(name) or default
            return "".join(
                f'<option value="{c}"{" selected" if c == current else ""}>{label}</option>'
                for c, label in choices
            )

        priorities = [(p, p.capitalize()) for p in reversed(PRIORITY_FILTERS)]
        cancel = (
            '<button type="button" class="btn btn-secondary btn-cancel" data-action="cancel-edit">Cancel</button>'
            if editing else ""
        )
        task_attr = f' data-task-id="{self.state.editing_task_id}"' if editing else ""
        return (
            f'<form id="taskForm" data-action="submit"{task_attr}>'
            f'<input name="title" value="{_val("title")}" required>'
            f'<textarea name="description">{_val("description")}</textarea>'
            f'<select name="category">{_options("category", CATEGORY_LABELS.items(), "other")}</select>'
            f'<select name="priority">{_options("priority", priorities, "medium")}</select>'
            f'<input type="date" name="dueDate" value="{_val("dueDate")}">'
            f'<input name="tags" value="{_val("tags")}">'
            f'<button type="submit">{"Update Task" if editing else "Add Task"}</button>{cancel}'
            "</form>"
        )

    def render_stats(self) -> str:
        result = self.controller.get_task_stats()
        if not result.success:
            return ""
        s = result.data
        high = s["byPriority"].get("high", 0) + s["byPriority"].get("urgent", 0)
        items = [
            ("", s["total"], "Total Tasks"),
            ("", s["byStatus"].get("pending", 0), "Pending"),
            ("", s["completed"], "Completed"),
            ("priority-high", high, "High Priority"),
            ("overdue" if s["overdue"] > 0 else "", s["overdue"], "Overdue"),
            ("", s["dueSoon"], "Due Soon"),
        ]
        cells = "".join(
            f'<div class="{" ".join(["stat-item", cls]).strip()}"><span class="stat-number">{n}</span>'
            f'<span class="stat-label">{label}</span></div>'
            for cls, n, label in items
        )
        return f'<div class="stats-grid">{cells}</div>'

    def render_category_stats(self) -> str:
        result = self.controller.get_category_stats()
        if not result.success:
            return ""
        cells = "".join(
            '<div class="category-stat-item">'
            f"<h4>{CATEGORY_LABELS.get(name, escape(name))}</h4>"
            f'<div class="stat-number">{stats["total"]}</div>'
            f'<small>{stats["completed"]} completed</small>'
            "</div>"
            for name, stats in result.data["byCategory"].items()
            if stats["total"] > 0
        )
        if not cells:
            return ""
        return f'<h3>Tasks by Category</h3><div class="category-stats">{cells}</div>'

    def render_messages(self) -> str:
        """Flash messages are shown once, then dropped."""
        html = "".join(
            f'<div class="message message-{m.kind}">{escape(m.text)}</div>' for m in self.state.messages
        )
        self.state.messages.clear()
        return html
