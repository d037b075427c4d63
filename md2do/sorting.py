"""Composable task comparators.

A comparator returns a negative number, zero or a positive number, like
``cmp``. Combine them with ``combine_comparators`` and apply them with
``sort_tasks``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import date
from functools import cmp_to_key

from .models import Task

TaskComparator = Callable[[Task, Task], int]

PRIORITY_ORDER = {
    "urgent": 0,
    "high": 1,
    "normal": 2,
    "low": 3,
}


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _cmp_optional_dates(a: date | None, b: date | None) -> int:
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1
    return _cmp(a, b)


def _cmp_optional_names(a: str | None, b: str | None) -> int:
    if not a and not b:
        return 0
    if not a:
        return 1
    if not b:
        return -1
    return _cmp((a.casefold(), a), (b.casefold(), b))


def priority_rank(task: Task) -> int:
    return PRIORITY_ORDER.get(task.priority or "low", PRIORITY_ORDER["low"])


def by_due_date() -> TaskComparator:
    """Earliest due date first; undated tasks last."""
    return lambda a, b: _cmp_optional_dates(a.due_date, b.due_date)


def by_priority() -> TaskComparator:
    """urgent, high, normal, then low (including no marker)."""
    return lambda a, b: priority_rank(a) - priority_rank(b)


def by_created_date() -> TaskComparator:
    """Earliest heading date first; tasks without one last."""
    return lambda a, b: _cmp_optional_dates(a.context_date, b.context_date)


def by_file() -> TaskComparator:
    """File path, then line number."""
    return lambda a, b: _cmp(a.file, b.file) or a.line - b.line


def by_project() -> TaskComparator:
    return lambda a, b: _cmp_optional_names(a.project, b.project)


def by_person() -> TaskComparator:
    return lambda a, b: _cmp_optional_names(a.person, b.person)


def by_assignee() -> TaskComparator:
    return lambda a, b: _cmp_optional_names(a.assignee, b.assignee)


def by_completion_status() -> TaskComparator:
    """Incomplete before completed."""
    return lambda a, b: int(a.completed) - int(b.completed)


def combine_comparators(comparators: Sequence[TaskComparator]) -> TaskComparator:
    """Apply comparators in order; the first non-zero result decides."""
    comparators = list(comparators)

    def compare(a: Task, b: Task) -> int:
        for comparator in comparators:
            result = comparator(a, b)
            if result != 0:
                return result
        return 0

    return compare


def reverse(comparator: TaskComparator) -> TaskComparator:
    return lambda a, b: -comparator(a, b)


def sort_tasks(tasks: Iterable[Task], comparator: TaskComparator) -> list[Task]:
    """Return a new list sorted by ``comparator``; ties keep input order."""
    return sorted(tasks, key=cmp_to_key(comparator))


SORT_FIELDS: dict[str, Callable[[], TaskComparator]] = {
    "due": by_due_date,
    "priority": by_priority,
    "created": by_created_date,
    "file": by_file,
    "project": by_project,
    "person": by_person,
    "assignee": by_assignee,
    "status": by_completion_status,
}
