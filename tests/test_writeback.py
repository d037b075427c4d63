"""Tests for in-place task line edits."""

from datetime import date

from md2do.writeback import (
    LineUpdate,
    add_task,
    remove_todoist_id,
    replace_text,
    set_checkbox,
    set_todoist_id,
    update_task,
    update_tasks,
    writeback_todoist_ids,
)

NOTES = """\
# Notes

- [ ] Write report [due: 2026-01-20]
- [x] Send invite [completed: 2026-01-10] [todoist:55]
Just prose
"""


def _notes(tmp_path, content=NOTES):
    path = tmp_path / "notes.md"
    path.write_bytes(content.encode("utf-8"))
    return path


class TestLineHelpers:
    def test_tick_adds_completed_date(self):
        assert set_checkbox("- [ ] Task", True, date(2026, 1, 18)) == (
            "- [x] Task [completed: 2026-01-18]"
        )

    def test_tick_keeps_existing_completed_date(self):
        line = "- [ ] Task [completed: 2026-01-01]"
        assert set_checkbox(line, True, date(2026, 1, 18)) == "- [x] Task [completed: 2026-01-01]"

    def test_tick_without_date(self):
        assert set_checkbox("  - [ ] Task", True) == "  - [x] Task"

    def test_untick_drops_completed_date(self):
        assert set_checkbox("- [X] Task [completed: 2026-01-01] #a", False) == "- [ ] Task #a"

    def test_replace_text_keeps_checkbox(self):
        assert replace_text("  - [x] Old", "New text") == "  - [x] New text"
        assert replace_text("not a task", "New") == "not a task"

    def test_set_todoist_id(self):
        assert set_todoist_id("- [ ] Task ", "42") == "- [ ] Task [todoist:42]"
        assert set_todoist_id("- [ ] Task [todoist: 1] #a", "42") == "- [ ] Task [todoist:42] #a"

    def test_remove_todoist_id(self):
        assert remove_todoist_id("- [ ] Task [todoist:42] #a") == "- [ ] Task #a"


class TestUpdateTask:
    def test_complete_task(self, tmp_path):
        path = _notes(tmp_path)
        result = update_task(path, 3, completed=True, completed_on=date(2026, 1, 18))

        assert result.success
        assert result.task.completed is True
        assert result.task.completed_date == date(2026, 1, 18)
        assert result.task.due_date == date(2026, 1, 20)
        lines = path.read_text().splitlines()
        assert lines[2] == "- [x] Write report [due: 2026-01-20] [completed: 2026-01-18]"
        assert lines[3] == "- [x] Send invite [completed: 2026-01-10] [todoist:55]"

    def test_change_text(self, tmp_path):
        path = _notes(tmp_path)
        result = update_task(path, 3, text="Write final report [due: 2026-01-21]")
        assert result.task.text == "Write final report"
        assert path.read_text().splitlines()[2] == "- [ ] Write final report [due: 2026-01-21]"

    def test_replace_whole_line(self, tmp_path):
        path = _notes(tmp_path)
        update_task(path, 4, replace_line="- [ ] Resend invite")
        assert path.read_text().splitlines()[3] == "- [ ] Resend invite"

    def test_not_a_task(self, tmp_path):
        path = _notes(tmp_path)
        result = update_task(path, 5, completed=True)
        assert not result.success
        assert "not a task" in result.error
        assert path.read_text() == NOTES

    def test_line_out_of_range(self, tmp_path):
        path = _notes(tmp_path)
        result = update_task(path, 99, completed=True)
        assert not result.success
        assert "Invalid line number 99" in result.error

    def test_missing_file(self, tmp_path):
        result = update_task(tmp_path / "missing.md", 1, completed=True)
        assert not result.success
        assert result.error.startswith("Failed to update task")

    def test_preserves_crlf(self, tmp_path):
        path = _notes(tmp_path, "- [ ] One\r\n- [ ] Two\r\n")
        update_task(path, 2, completed=True)
        assert path.read_bytes() == b"- [ ] One\r\n- [x] Two\r\n"

    def test_no_temp_file_left(self, tmp_path):
        path = _notes(tmp_path)
        update_task(path, 3, completed=True)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["notes.md"]

    def test_failed_replace_removes_temp_file(self, tmp_path, monkeypatch):
        path = _notes(tmp_path)

        def fail_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("md2do.writeback.os.replace", fail_replace)
        result = update_task(path, 3, completed=True)

        assert not result.success
        assert "disk full" in result.error
        assert path.read_bytes() == NOTES.encode("utf-8")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["notes.md"]

    def test_short_due_date_in_result_uses_current_year(self, tmp_path):
        path = _notes(tmp_path, "- [ ] Renew passport\n")
        result = update_task(path, 1, text="Renew passport [due: 3/4]")
        assert result.task.due_date == date(date.today().year, 3, 4)


class TestUpdateTasks:
    def test_batch(self, tmp_path):
        path = _notes(tmp_path)
        result = update_tasks(
            path,
            [
                LineUpdate(line=4, completed=False, unlink=True),
                LineUpdate(line=3, completed=True, completed_on=date(2026, 1, 18)),
                LineUpdate(line=5, completed=True),
            ],
        )
        assert result.updated == 2
        assert [line for line, _ in result.errors] == [5]
        assert not result.success

        lines = path.read_text().splitlines()
        assert lines[2] == "- [x] Write report [due: 2026-01-20] [completed: 2026-01-18]"
        assert lines[3] == "- [ ] Send invite"

    def test_nothing_valid_leaves_file_alone(self, tmp_path):
        path = _notes(tmp_path)
        result = update_tasks(path, [LineUpdate(line=1, completed=True)])
        assert result.updated == 0
        assert path.read_text() == NOTES


class TestAddTask:
    def test_append(self, tmp_path):
        path = _notes(tmp_path)
        result = add_task(path, "New thing #ops")
        assert result.success
        assert result.task.line == 6
        assert result.task.tags == ("ops",)
        assert path.read_text().splitlines()[-1] == "- [ ] New thing #ops"

    def test_append_to_file_without_trailing_newline(self, tmp_path):
        path = _notes(tmp_path, "- [ ] One")
        add_task(path, "Two")
        assert path.read_text() == "- [ ] One\n- [ ] Two\n"

    def test_insert_at_line(self, tmp_path):
        path = _notes(tmp_path)
        result = add_task(path, "Inserted", line=2, completed=True)
        assert result.task.line == 2
        assert result.task.completed is True
        assert path.read_text().splitlines()[1] == "- [x] Inserted"

    def test_create_file(self, tmp_path):
        path = tmp_path / "new.md"
        add_task(path, "First")
        assert path.read_text() == "- [ ] First\n"

    def test_invalid_line(self, tmp_path):
        path = _notes(tmp_path)
        result = add_task(path, "Nope", line=50)
        assert not result.success


class TestWritebackTodoistIds:
    def test_sets_ids(self, tmp_path):
        path = _notes(tmp_path)
        assert writeback_todoist_ids(path, {3: "99"}) is True
        assert path.read_text().splitlines()[2] == "- [ ] Write report [due: 2026-01-20] [todoist:99]"

    def test_idempotent(self, tmp_path):
        path = _notes(tmp_path)
        assert writeback_todoist_ids(path, {4: "55"}) is False
        assert path.read_text() == NOTES

    def test_skips_non_task_lines(self, tmp_path):
        path = _notes(tmp_path)
        assert writeback_todoist_ids(path, {5: "1", 42: "2"}) is False
        assert path.read_text() == NOTES

    def test_empty_map(self, tmp_path):
        assert writeback_todoist_ids(tmp_path / "missing.md", {}) is False
