"""Tests for the markdown task regex patterns."""

import pytest

from md2do import patterns


@pytest.mark.parametrize(
    "line, state",
    [
        ("- [ ] Task", " "),
        ("- [x] Task", "x"),
        ("  - [X] Indented", "X"),
        ("-   [ ] Extra space after dash", " "),
    ],
)
def test_task_checkbox_matches(line, state):
    m = patterns.TASK_CHECKBOX.match(line)
    assert m is not None
    assert m.group(2) == state


@pytest.mark.parametrize(
    "line",
    [
        "* [ ] Star bullet",
        "- [ ]No space",
        "- [y] Wrong mark",
        "- Plain bullet",
        "## Heading",
        "- [ ]",
    ],
)
def test_task_checkbox_rejects(line):
    assert patterns.TASK_CHECKBOX.match(line) is None


def test_priority_patterns():
    assert patterns.PRIORITY_URGENT.search("Task !!!")
    assert patterns.PRIORITY_HIGH.search("Task !!")
    assert patterns.PRIORITY_NORMAL.search("Task !")
    assert not patterns.PRIORITY_NORMAL.search("Task !!")
    assert not patterns.PRIORITY_NORMAL.search("Task !!!")


def test_tag_pattern_collects_all():
    assert patterns.TAG.findall("Fix #backend and #urgent-fix #backend") == [
        "backend",
        "urgent-fix",
        "backend",
    ]
    assert patterns.TAG.findall("# heading") == []


def test_due_date_patterns():
    assert patterns.DUE_DATE_ABSOLUTE.search("[due:  2026-01-25  ]").group(1) == "2026-01-25"
    assert patterns.DUE_DATE_ABSOLUTE.search("[DUE:2026-01-25]").group(1) == "2026-01-25"
    assert patterns.DUE_DATE_SHORT.search("[due: 1/25]").group(1) == "1/25"
    assert patterns.DUE_DATE_SHORT.search("[due: 12/31/2026]").group(1) == "12/31/2026"
    assert patterns.DUE_DATE_RELATIVE.search("[due: next  week]").group(1) == "next  week"
    assert patterns.DUE_DATE_RELATIVE.search("[due: Tomorrow]").group(1) == "Tomorrow"
    assert patterns.DUE_DATE_RELATIVE.search("[due: someday]") is None


def test_todoist_and_completed_patterns():
    assert patterns.TODOIST_ID.search("[todoist: 987654321]").group(1) == "987654321"
    assert patterns.TODOIST_ID.search("[todoist:abc]") is None
    assert patterns.COMPLETED_DATE.search("[completed:2026-01-18]").group(1) == "2026-01-18"


def test_heading_date_patterns():
    assert patterns.HEADING_DATE_SLASH.match("## Meeting 1/13/26").group(1) == "1/13/26"
    assert patterns.HEADING_DATE_ISO.match("### Notes 2026-01-13").group(1) == "2026-01-13"
    m = patterns.HEADING_DATE_NATURAL.match("## Q1 Planning - January 15, 2026")
    assert m.groups() == ("Jan", "15", "2026")
    assert patterns.HEADING_DATE_ISO.match("Notes 2026-01-13") is None


def test_syntax_rules_are_ordered():
    rule_ids = [rule_id for _, rule_id, _ in patterns.SYNTAX_RULES]
    assert rule_ids == [
        "unsupported-bullet",
        "malformed-checkbox",
        "missing-space-after",
        "missing-space-before",
    ]
