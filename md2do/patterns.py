"""Regex patterns for markdown task syntax.

Each pattern is a compiled matcher with no state, so the parser can run
several of them over the same text. Group numbers are noted where callers
depend on them.
"""

from __future__ import annotations

import re

from .models import (
    RULE_MALFORMED_CHECKBOX,
    RULE_MISSING_SPACE_AFTER,
    RULE_MISSING_SPACE_BEFORE,
    RULE_UNSUPPORTED_BULLET,
)

# "- [ ] Task", "  - [X] Task". Groups: 1 indentation, 2 checkbox state.
TASK_CHECKBOX = re.compile(r"^(\s*)-\s+\[([ xX])\]\s+")

# First "@name" in the text. Group 1: username.
ASSIGNEE = re.compile(r"@([\w-]+)")

PRIORITY_URGENT = re.compile(r"!!!")
PRIORITY_HIGH = re.compile(r"!!")
# A single "!" with no "!" on either side.
PRIORITY_NORMAL = re.compile(r"(?<!!)!(?!!)")

# "[due: 2026-01-25]". Group 1: ISO date.
DUE_DATE_ABSOLUTE = re.compile(r"\[due:\s*(\d{4}-\d{2}-\d{2})\s*\]", re.IGNORECASE)

# "[due: tomorrow]", "[due: next week]". Group 1: keyword.
DUE_DATE_RELATIVE = re.compile(
    r"\[due:\s*(tomorrow|today|next\s+week|next\s+month)\s*\]", re.IGNORECASE
)

# "[due: 1/25]", "[due: 1/25/26]", "[due: 1/25/2026]". Group 1: date string.
DUE_DATE_SHORT = re.compile(r"\[due:\s*(\d{1,2}/\d{1,2}(?:/\d{2,4})?)\s*\]", re.IGNORECASE)

# "#backend", "#urgent-fix"; "# heading" does not match. Group 1: tag name.
TAG = re.compile(r"#([\w-]+)")

# "[todoist:123456789]". Group 1: numeric id.
TODOIST_ID = re.compile(r"\[todoist:\s*(\d+)\s*\]", re.IGNORECASE)

# "[completed: 2026-01-18]". Group 1: ISO date.
COMPLETED_DATE = re.compile(r"\[completed:\s*(\d{4}-\d{2}-\d{2})\s*\]", re.IGNORECASE)

HEADING = re.compile(r"^#{1,6}\s+")

# "## Meeting 1/13/26", "## Sprint 01/13/2026". Group 1: date string.
HEADING_DATE_SLASH = re.compile(r"^#{1,6}\s+.*?(\d{1,2}/\d{1,2}/\d{2,4})")

# "### Notes 2026-01-13". Group 1: date string.
HEADING_DATE_ISO = re.compile(r"^#{1,6}\s+.*?(\d{4}-\d{2}-\d{2})")

# "## Q1 Planning - Jan 15, 2026". Groups: 1 month, 2 day, 3 year.
HEADING_DATE_NATURAL = re.compile(
    r"^#{1,6}\s+.*?(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+(\d{1,2}),?\s+(\d{4})",
    re.IGNORECASE,
)

# Malformed checkbox rules, checked in order before TASK_CHECKBOX. A match
# suppresses the task and yields one warning.
SYNTAX_RULES: list[tuple[re.Pattern[str], str, str]] = [
    (
        re.compile(r"^\s*[*+]\s+\[[ xX]\]"),
        RULE_UNSUPPORTED_BULLET,
        "Unsupported bullet marker (* or +). Use dash (-) for task lists.",
    ),
    (
        re.compile(r"^\s*-\s+\[(?:[xX]\s+|\s+[xX])\]"),
        RULE_MALFORMED_CHECKBOX,
        "Malformed checkbox with extra spaces. Use [x] or [ ] without extra spaces.",
    ),
    (
        re.compile(r"^\s*-\s+\[[ xX]\]\S"),
        RULE_MISSING_SPACE_AFTER,
        'Missing space after checkbox. Use "- [x] Task" format.',
    ),
    (
        re.compile(r"^\s*-\[[ xX]\]"),
        RULE_MISSING_SPACE_BEFORE,
        'Missing space before checkbox. Use "- [x] Task" format.',
    ),
]

# Bracketed markers removed from task text, in removal order.
BRACKET_MARKERS = (
    DUE_DATE_ABSOLUTE,
    DUE_DATE_RELATIVE,
    DUE_DATE_SHORT,
    TODOIST_ID,
    COMPLETED_DATE,
)
