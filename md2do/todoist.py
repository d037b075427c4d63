"""Todoist REST API client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

import httpx

logger = logging.getLogger(__name__)

TODOIST_API_URL = "https://api.todoist.com/rest/v2"


@dataclass
class TodoistTask:
    """A task as returned by the Todoist API."""

    id: str
    content: str
    is_completed: bool = False
    priority: int = 1  # 1 (lowest) to 4 (urgent)
    labels: list[str] = field(default_factory=list)
    due_date: date | None = None
    project_id: str | None = None
    url: str | None = None

    @classmethod
    def from_json(cls, data: dict) -> TodoistTask:
        due = data.get("due") or {}
        due_date = None
        if due.get("date"):
            try:
                due_date = date.fromisoformat(due["date"][:10])
            except (ValueError, TypeError):
                pass
        return cls(
            id=str(data["id"]),
            content=data.get("content", ""),
            is_completed=bool(data.get("is_completed", False)),
            priority=int(data.get("priority", 1)),
            labels=list(data.get("labels") or []),
            due_date=due_date,
            project_id=data.get("project_id"),
            url=data.get("url"),
        )


@dataclass
class TodoistProject:
    id: str
    name: str


class TodoistClient:
    """Thin client for the Todoist REST API v2."""

    def __init__(
        self,
        token: str,
        base_url: str = TODOIST_API_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=30.0,
            transport=transport,
        )

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        resp = self._client.request(method, path, **kwargs)
        logger.debug("%s %s -> %d", method, path, resp.status_code)
        resp.raise_for_status()
        return resp

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def list_tasks(self, project_id: str | None = None) -> list[TodoistTask]:
        """List active tasks, optionally limited to one project."""
        params = {"project_id": project_id} if project_id else None
        resp = self._request("GET", "/tasks", params=params)
        return [TodoistTask.from_json(t) for t in resp.json()]

    def get_task(self, task_id: str) -> TodoistTask | None:
        """Fetch one task; None if Todoist no longer has it."""
        resp = self._client.get(f"/tasks/{task_id}")
        logger.debug("GET /tasks/%s -> %d", task_id, resp.status_code)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return TodoistTask.from_json(resp.json())

    def create_task(self, params: dict) -> TodoistTask:
        resp = self._request("POST", "/tasks", json=params)
        return TodoistTask.from_json(resp.json())

    def update_task(self, task_id: str, params: dict) -> TodoistTask:
        resp = self._request("POST", f"/tasks/{task_id}", json=params)
        return TodoistTask.from_json(resp.json())

    def close_task(self, task_id: str) -> None:
        self._request("POST", f"/tasks/{task_id}/close")

    def reopen_task(self, task_id: str) -> None:
        self._request("POST", f"/tasks/{task_id}/reopen")

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> list[TodoistProject]:
        resp = self._request("GET", "/projects")
        return [TodoistProject(id=str(p["id"]), name=p["name"]) for p in resp.json()]

    def find_project_by_name(self, name: str) -> TodoistProject | None:
        """Case-insensitive project lookup by name."""
        lowered = name.lower()
        for project in self.list_projects():
            if project.name.lower() == lowered:
                return project
        return None

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()
