# app/client/controller.py
"""
Thin API client used by the task view. Every call returns a ``Result`` and never
raises for HTTP or transport errors, so the view can just show ``result.error``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass
class Result:
    success: bool
    data: Any = None
    message: Optional[str] = None
    error: Optional[str] = None


class TaskController:
    def __init__(self, http: httpx.Client, token: Optional[str] = None) -> None:
        self.http = http
        self.token = token

    # ---- 내부 ----
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _call(self, method: str, url: str, **kwargs: Any) -> Result:
        try:
            resp = self.http.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("API request failed: %s %s (%s)", method, url, exc)
            return Result(success=False, error=f"Network error: {exc}")

        if resp.status_code == 204:
            return Result(success=True)

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.is_success:
            return Result(success=True, data=body.get("data"), message=body.get("message"))
        return Result(
            success=False,
            error=body.get("error") or f"Request failed ({resp.status_code})",
            data=body,
        )

    # ---- 인증 ----
    def register(self, username: str, email: str, password: str) -> Result:
        res = self._call("POST", "/auth/register", json={"username": username, "email": email, "password": password})
        if res.success:
            self.token = res.data["token"]
        return res

    def login(self, email: str, password: str) -> Result:
        res = self._call("POST", "/auth/login", json={"email": email, "password": password})
        if res.success:
            self.token = res.data["token"]
        return res

    # ---- 조회 ----
    def get_tasks(
        self,
        *,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Result:
        params = {
            "status": status,
            "priority": priority,
            "category": category,
            "search": search,
            "tag": tag,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        }
        res = self._call("GET", "/api/tasks", params={k: v for k, v in params.items() if v})
        if res.success:
            res.data = res.data["tasks"]
        return res

    def search_tasks(self, query: str, **kwargs: Any) -> Result:
        return self.get_tasks(search=query, **kwargs)

    def get_tasks_by_category(self, category: str, **kwargs: Any) -> Result:
        return self.get_tasks(category=category, **kwargs)

    def get_task(self, task_id: int) -> Result:
        return self._call("GET", f"/api/tasks/{task_id}")

    def get_task_stats(self) -> Result:
        return self._call("GET", "/api/tasks/stats")

    def get_category_stats(self) -> Result:
        res = self.get_task_stats()
        if res.success:
            res.data = {"byCategory": res.data["byCategory"]}
        return res

    # ---- 변경 ----
    def create_task(self, task_data: Dict[str, Any]) -> Result:
        return self._call("POST", "/api/tasks", json=task_data)

    def update_task(self, task_id: int, task_data: Dict[str, Any]) -> Result:
        return self._call("PUT", f"/api/tasks/{task_id}", json=task_data)

    def toggle_task_status(self, task_id: int) -> Result:
        return self._call("PATCH", f"/api/tasks/{task_id}/toggle")

    def delete_task(self, task_id: int) -> Result:
        res = self._call("DELETE", f"/api/tasks/{task_id}")
        if res.success and not res.message:
            res.message = "Task deleted successfully"
        return res

    def delete_all_tasks(self) -> Result:
        return self._call("DELETE", "/api/tasks")
