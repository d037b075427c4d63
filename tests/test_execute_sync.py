"""Tests for execute_sync against a mocked Todoist client."""

from datetime import date
from unittest.mock import MagicMock

import httpx

from md2do.files import scan_directory
from md2do.sync import execute_sync
from md2do.todoist import TodoistClient, TodoistTask

NOTES = """\
## Sprint 2026-01-12

- [ ] New task !! #backend
- [ ] Linked open [todoist:100]
- [ ] Linked remotely done [todoist:200]
- [ ] Deleted remotely [todoist:300]
"""


def _make_remote(task_id, content, completed=False, priority=1, **kwargs):
    return TodoistTask(id=task_id, content=content, is_completed=completed,
                       priority=priority, **kwargs)


def _mock_client(remote: dict | None = None) -> MagicMock:
    remote = remote or {}
    client = MagicMock(spec=TodoistClient)
    client.get_task.side_effect = lambda task_id: remote.get(task_id)
    client.create_task.return_value = _make_remote("999", "New task", priority=3)
    return client


def _setup(tmp_path, content=NOTES):
    (tmp_path / "notes.md").write_text(content, encoding="utf-8")
    return scan_directory(tmp_path).tasks


REMOTE = {
    "100": _make_remote("100", "Linked open"),
    "200": _make_remote("200", "Linked remotely done", completed=True),
    "300": None,
}


class TestExecuteSync:
    def test_full_sync(self, tmp_path):
        tasks = _setup(tmp_path)
        client = _mock_client(REMOTE)

        result = execute_sync(client, tasks, tmp_path, today=date(2026, 1, 18))

        assert result.errors == []
        assert result.created == 1
        assert result.pulled == 1
        assert result.unlinked == 1
        assert result.unchanged == 1
        assert result.created_ids == {"notes.md:3": "999"}

        client.create_task.assert_called_once_with(
            {"content": "New task", "priority": 3, "labels": ["backend"]}
        )
        client.update_task.assert_not_called()

        lines = (tmp_path / "notes.md").read_text().splitlines()
        assert lines[2] == "- [ ] New task !! #backend [todoist:999]"
        assert lines[3] == "- [ ] Linked open [todoist:100]"
        assert lines[4] == "- [x] Linked remotely done [todoist:200] [completed: 2026-01-18]"
        assert lines[5] == "- [ ] Deleted remotely"

    def test_project_id_passed_to_create(self, tmp_path):
        tasks = _setup(tmp_path, "- [ ] Solo [due: 2026-01-20]\n")
        client = _mock_client()

        execute_sync(client, tasks, tmp_path, project_id="p1")

        params = client.create_task.call_args.args[0]
        assert params["project_id"] == "p1"
        assert params["due_date"] == "2026-01-20"

    def test_push_closes_remote(self, tmp_path):
        tasks = _setup(tmp_path, "- [x] Shipped [completed: 2026-01-10] [todoist:100]\n")
        client = _mock_client({"100": _make_remote("100", "Shipped")})

        result = execute_sync(client, tasks, tmp_path, direction="push")

        assert result.pushed == 1
        client.close_task.assert_called_once_with("100")
        client.reopen_task.assert_not_called()

    def test_push_reopens_remote(self, tmp_path):
        tasks = _setup(tmp_path, "- [ ] Not done yet [todoist:100]\n")
        client = _mock_client({"100": _make_remote("100", "Not done yet", completed=True)})

        execute_sync(client, tasks, tmp_path, direction="push")

        client.reopen_task.assert_called_once_with("100")

    def test_update_changed_content(self, tmp_path):
        tasks = _setup(tmp_path, "- [ ] Renamed !!! [todoist:100]\n")
        client = _mock_client({"100": _make_remote("100", "Original")})

        result = execute_sync(client, tasks, tmp_path)

        assert result.updated == 1
        client.update_task.assert_called_once_with("100", {"content": "Renamed", "priority": 4})

    def test_dry_run_makes_no_write_calls(self, tmp_path):
        tasks = _setup(tmp_path)
        client = _mock_client(REMOTE)

        result = execute_sync(client, tasks, tmp_path, dry_run=True)

        assert result.created == 1
        assert result.pulled == 1
        assert result.unlinked == 1
        client.create_task.assert_not_called()
        client.update_task.assert_not_called()
        client.close_task.assert_not_called()
        assert (tmp_path / "notes.md").read_text() == NOTES

    def test_create_error_recorded(self, tmp_path):
        tasks = _setup(tmp_path, "- [ ] Solo [due: 2026-01-20]\n")
        client = _mock_client()
        client.create_task.side_effect = httpx.ConnectError("boom")

        result = execute_sync(client, tasks, tmp_path)

        assert result.created == 0
        assert len(result.errors) == 1
        assert "Failed to create 'Solo'" in result.errors[0]
        assert (tmp_path / "notes.md").read_text() == "- [ ] Solo [due: 2026-01-20]\n"

    def test_fetch_error_skips_task(self, tmp_path):
        tasks = _setup(tmp_path, "- [ ] Linked [todoist:100]\n")
        client = _mock_client()
        client.get_task.side_effect = httpx.ConnectError("offline")

        result = execute_sync(client, tasks, tmp_path)

        assert len(result.errors) == 1
        assert "Failed to fetch Todoist task 100" in result.errors[0]
        client.update_task.assert_not_called()
        client.create_task.assert_not_called()

    def test_second_run_is_idempotent(self, tmp_path):
        tasks = _setup(tmp_path, "- [ ] Solo [due: 2026-01-20]\n")
        client = _mock_client()
        execute_sync(client, tasks, tmp_path)

        tasks = scan_directory(tmp_path).tasks
        client = _mock_client(
            {"999": _make_remote("999", "Solo", due_date=date(2026, 1, 20))}
        )
        result = execute_sync(client, tasks, tmp_path)

        assert result.created == 0
        assert result.updated == 0
        assert result.unchanged == 1
