"""Tests for file scanning and heading context."""

from datetime import date

from md2do.scanner import (
    context_for_path,
    extract_person_from_filename,
    extract_project_from_path,
    scan_file,
    scan_files,
)

MEETING_NOTES = """\
# Weekly notes

- [ ] Undated task [due: 2026-02-01]

## Meeting 1/13/26

- [ ] Task [due: tomorrow]
- [x] Done thing [completed: 2026-01-13]
* [ ] Bad bullet

### Follow-up 2026-01-20

- [ ] @jane Next step !!! [due: next week]
"""


def test_scan_counts_and_lines():
    result = scan_file("notes.md", MEETING_NOTES)
    assert result.files_scanned == 1
    assert [t.line for t in result.tasks] == [3, 7, 8, 13]
    assert result.total_tasks == 4


def test_heading_sets_context_for_following_tasks():
    result = scan_file("notes.md", MEETING_NOTES)
    first, relative, done, follow_up = result.tasks

    assert first.context_date is None
    assert first.context_heading is None

    assert relative.due_date == date(2026, 1, 14)
    assert relative.context_date == date(2026, 1, 13)
    assert relative.context_heading == "## Meeting 1/13/26"
    assert done.context_date == date(2026, 1, 13)

    assert follow_up.context_date == date(2026, 1, 20)
    assert follow_up.due_date == date(2026, 1, 26)
    assert follow_up.priority == "urgent"


def test_warnings_collected_with_line_numbers():
    result = scan_file("notes.md", MEETING_NOTES)
    assert [(w.line, w.rule_id) for w in result.warnings] == [(9, "unsupported-bullet")]


def test_relative_date_with_heading_context_has_no_warnings():
    content = "## Meeting 1/13/26\n- [ ] Task [due: tomorrow]\n"
    result = scan_file("notes.md", content)
    assert result.tasks[0].due_date == date(2026, 1, 14)
    assert result.warnings == []


def test_undated_heading_keeps_previous_context():
    content = "## Sync 2026-01-13\n## Action items\n- [ ] Task\n"
    result = scan_file("notes.md", content)
    assert result.tasks[0].context_date == date(2026, 1, 13)
    assert result.tasks[0].context_heading == "## Sync 2026-01-13"


def test_context_date_only_moves_on_dated_headings():
    content = "\n".join(
        [
            "- [ ] a",
            "## 2026-01-01 kickoff",
            "- [ ] b",
            "- [ ] c",
            "## 2026-03-01 review",
            "- [ ] d",
        ]
    )
    dates = [t.context_date for t in scan_file("notes.md", content).tasks]
    assert dates == [None, date(2026, 1, 1), date(2026, 1, 1), date(2026, 3, 1)]


def test_crlf_line_endings():
    content = "## Meeting 1/13/26\r\n- [ ] Task [due: tomorrow]\r\n"
    result = scan_file("notes.md", content)
    assert result.tasks[0].line == 2
    assert result.tasks[0].text == "Task"
    assert result.tasks[0].due_date == date(2026, 1, 14)


def test_empty_content():
    result = scan_file("empty.md", "")
    assert result.tasks == []
    assert result.warnings == []
    assert result.files_scanned == 1


def test_scan_files_resets_context_per_file():
    result = scan_files(
        [
            ("a.md", "## 2026-01-13 notes\n- [ ] First\n"),
            ("b.md", "- [ ] Second [due: today]\n"),
        ]
    )
    assert result.files_scanned == 2
    assert [t.file for t in result.tasks] == ["a.md", "b.md"]
    assert result.tasks[1].context_date is None
    assert result.tasks[1].due_date is None
    assert [w.rule_id for w in result.warnings] == ["relative-date-no-context", "missing-due-date"]


class TestPathContext:
    def test_project(self):
        assert extract_project_from_path("projects/acme-app/notes.md") == "acme-app"
        assert extract_project_from_path("work/projects/acme/sub/notes.md") == "acme"
        assert extract_project_from_path("myprojects/acme/notes.md") is None
        assert extract_project_from_path("notes.md") is None

    def test_person(self):
        assert extract_person_from_filename("1-1s/jane-doe.md") == "jane-doe"
        assert extract_person_from_filename("team/1-1s/bob.md") == "bob"
        assert extract_person_from_filename("1-1s/archive/bob.md") is None
        assert extract_person_from_filename("people/bob.md") is None

    def test_windows_separators(self):
        assert extract_project_from_path("projects\\acme\\notes.md") == "acme"
        assert extract_person_from_filename("1-1s\\jane.md") == "jane"

    def test_context_for_path(self):
        ctx = context_for_path("projects/acme/1-1s/jane.md")
        assert ctx.project == "acme"
        assert ctx.person == "jane"
        assert ctx.current_date is None

    def test_scanned_tasks_carry_path_context(self):
        result = scan_file("projects/acme/1-1s/jane.md", "- [ ] Ask about roadmap\n")
        assert result.tasks[0].project == "acme"
        assert result.tasks[0].person == "jane"


def test_short_due_date_year_from_reference_date():
    content = "- [ ] Renew passport [due: 3/4]\n## Review 2025-11-02\n- [ ] File taxes [due: 3/4]\n"
    result = scan_file("todo.md", content, reference_date=date(2027, 8, 9))
    assert [t.due_date for t in result.tasks] == [date(2027, 3, 4), date(2025, 3, 4)]


def test_short_due_date_without_reference_date():
    result = scan_file("todo.md", "- [ ] Renew passport [due: 3/4]\n")
    assert result.tasks[0].due_date is None
    assert [w.rule_id for w in result.warnings] == ["missing-due-date"]


def test_scan_files_passes_reference_date():
    result = scan_files([("a.md", "- [ ] A [due: 3/4]\n")], reference_date=date(2027, 1, 1))
    assert result.tasks[0].due_date == date(2027, 3, 4)
