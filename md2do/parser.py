"""Parser for single markdown task lines."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date

from . import patterns
from .dates import parse_absolute_date, resolve_relative_date
from .ids import generate_task_id
from .models import (
    RULE_MISSING_COMPLETED_DATE,
    RULE_MISSING_DUE_DATE,
    RULE_RELATIVE_DATE_NO_CONTEXT,
    ParsingContext,
    Priority,
    ScanWarning,
    Task,
)

RE_WHITESPACE = re.compile(r"\s+")


@dataclass
class LineResult:
    """Outcome of parsing one line: at most one task, any number of warnings."""

    task: Task | None = None
    warnings: list[ScanWarning] = field(default_factory=list)


@dataclass
class DueDateResult:
    date: date | None = None
    warning: str | None = None


def is_task_line(line: str) -> bool:
    return patterns.TASK_CHECKBOX.match(line) is not None


def extract_assignee(text: str) -> str | None:
    """Return the first ``@mention`` without the ``@``."""
    m = patterns.ASSIGNEE.search(text)
    return m.group(1) if m else None


def extract_priority(text: str) -> Priority | None:
    """Map ``!!!``/``!!``/``!`` to urgent/high/normal; no marker gives None."""
    if patterns.PRIORITY_URGENT.search(text):
        return "urgent"
    if patterns.PRIORITY_HIGH.search(text):
        return "high"
    if patterns.PRIORITY_NORMAL.search(text):
        return "normal"
    return None


def extract_tags(text: str) -> tuple[str, ...]:
    return tuple(patterns.TAG.findall(text))


def extract_todoist_id(text: str) -> str | None:
    m = patterns.TODOIST_ID.search(text)
    return m.group(1) if m else None


def extract_completed_date(text: str) -> date | None:
    m = patterns.COMPLETED_DATE.search(text)
    return parse_absolute_date(m.group(1)) if m else None


def extract_due_date(text: str, context: ParsingContext) -> DueDateResult:
    """Find a due date marker, resolving relative keywords against the context.

    A relative keyword with no context date yields a warning message and no
    date. A short ``M/D`` date without a year takes the year of the context
    date, else of the reference date; with neither it resolves to no date.
    """
    m = patterns.DUE_DATE_ABSOLUTE.search(text)
    if m:
        return DueDateResult(date=parse_absolute_date(m.group(1)))

    m = patterns.DUE_DATE_SHORT.search(text)
    if m:
        raw = m.group(1)
        if raw.count("/") == 1:
            year_source = context.current_date or context.reference_date
            if year_source is None:
                return DueDateResult()
            raw = f"{raw}/{year_source.year}"
        return DueDateResult(date=parse_absolute_date(raw))

    m = patterns.DUE_DATE_RELATIVE.search(text)
    if m:
        if context.current_date is None:
            return DueDateResult(
                warning=(
                    "Relative due date without context date from heading. "
                    "Add a heading with a date above this task."
                )
            )
        return DueDateResult(date=resolve_relative_date(m.group(1), context.current_date))

    return DueDateResult()


def clean_task_text(text: str) -> str:
    """Strip metadata markers from task text for display.

    Bracketed markers go first, then mentions, tags and ``!`` runs, then
    whitespace is collapsed.
    """
    for pattern in patterns.BRACKET_MARKERS:
        text = pattern.sub("", text)
    text = patterns.ASSIGNEE.sub("", text)
    text = patterns.TAG.sub("", text)
    text = text.replace("!", "")
    return RE_WHITESPACE.sub(" ", text).strip()


def parse_line(
    line: str,
    line_number: int,
    file_path: str,
    context: ParsingContext | None = None,
) -> LineResult:
    """Parse one line of markdown into a Task.

    Malformed checkboxes produce a single warning and no task. Lines that
    are not checkboxes at all produce neither. Never raises on content.
    """
    context = context or ParsingContext()
    result = LineResult()

    for pattern, rule_id, message in patterns.SYNTAX_RULES:
        if pattern.match(line):
            result.warnings.append(
                ScanWarning.for_rule(rule_id, file_path, line_number, message, line.strip())
            )
            return result

    m = patterns.TASK_CHECKBOX.match(line)
    if not m:
        return result

    completed = m.group(2).lower() == "x"
    full_text = line[m.end():]
    raw_text = full_text.strip()

    assignee = extract_assignee(full_text)
    priority = extract_priority(full_text)
    tags = extract_tags(full_text)
    todoist_id = extract_todoist_id(full_text)
    completed_date = extract_completed_date(full_text)

    due = extract_due_date(full_text, context)
    if due.warning:
        result.warnings.append(
            ScanWarning.for_rule(
                RULE_RELATIVE_DATE_NO_CONTEXT, file_path, line_number, due.warning, raw_text
            )
        )

    if not completed and due.date is None and context.current_date is None:
        result.warnings.append(
            ScanWarning.for_rule(
                RULE_MISSING_DUE_DATE,
                file_path,
                line_number,
                "Task has no due date. Add [due: YYYY-MM-DD] or place under a heading with a date.",
                raw_text,
            )
        )

    if completed and completed_date is None:
        result.warnings.append(
            ScanWarning.for_rule(
                RULE_MISSING_COMPLETED_DATE,
                file_path,
                line_number,
                "Completed task missing completion date. Add [completed: YYYY-MM-DD].",
                raw_text,
            )
        )

    text = clean_task_text(full_text)
    result.task = Task(
        id=generate_task_id(file_path, line_number, text),
        text=text,
        completed=completed,
        file=file_path,
        line=line_number,
        tags=tags,
        project=context.project,
        person=context.person,
        context_date=context.current_date,
        context_heading=context.current_heading,
        assignee=assignee,
        due_date=due.date,
        priority=priority,
        todoist_id=todoist_id,
        completed_date=completed_date,
    )
    return result
