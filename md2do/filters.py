"""Composable task filters.

Every factory returns a predicate ``Task -> bool`` for use with ``filter()``
or a list comprehension. Date windows are computed on UTC calendar days
relative to a reference instant, which defaults to now.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import date, datetime, timedelta, timezone

from .dates import start_of_week, utc_day
from .models import Priority, Task

TaskFilter = Callable[[Task], bool]


def by_assignee(assignee: str) -> TaskFilter:
    return lambda task: task.assignee == assignee


def by_completed(completed: bool) -> TaskFilter:
    return lambda task: task.completed == completed


def by_priority(priority: Priority) -> TaskFilter:
    """Match a priority level; ``"low"`` matches tasks with no marker."""
    if priority == "low":
        return lambda task: task.priority in (None, "low")
    return lambda task: task.priority == priority


def by_project(project: str) -> TaskFilter:
    return lambda task: task.project == project


def by_person(person: str) -> TaskFilter:
    return lambda task: task.person == person


def by_tag(tag: str) -> TaskFilter:
    return lambda task: tag in task.tags


def by_path(path: str, recursive: bool = True) -> TaskFilter:
    """Match a file exactly (``*.md``) or every file under a directory.

    With ``recursive=False`` only files directly inside the directory match.
    """
    target = path.replace("\\", "/").rstrip("/")
    if target.endswith(".md"):
        return lambda task: task.file.replace("\\", "/") == target

    prefix = target + "/"

    def predicate(task: Task) -> bool:
        task_path = task.file.replace("\\", "/")
        if recursive:
            return task_path == target or task_path.startswith(prefix)
        if not task_path.startswith(prefix):
            return False
        return "/" not in task_path[len(prefix):]

    return predicate


def has_due_date() -> TaskFilter:
    return lambda task: task.due_date is not None


def has_no_due_date() -> TaskFilter:
    return lambda task: task.due_date is None


def _reference_day(reference: datetime | date | None) -> date:
    return utc_day(reference if reference is not None else datetime.now(timezone.utc))


def _due_between(start: date, end: date) -> TaskFilter:
    def predicate(task: Task) -> bool:
        if task.completed or task.due_date is None:
            return False
        return start <= task.due_date <= end

    return predicate


def is_overdue(reference: datetime | date | None = None) -> TaskFilter:
    """Open tasks due before the reference day."""
    today = _reference_day(reference)

    def predicate(task: Task) -> bool:
        if task.completed or task.due_date is None:
            return False
        return task.due_date < today

    return predicate


def is_due_today(reference: datetime | date | None = None) -> TaskFilter:
    today = _reference_day(reference)
    return _due_between(today, today)


def is_due_this_week(reference: datetime | date | None = None) -> TaskFilter:
    """Open tasks due Monday through Sunday of the reference week."""
    monday = start_of_week(_reference_day(reference))
    return _due_between(monday, monday + timedelta(days=6))


def is_due_within_days(days: int, reference: datetime | date | None = None) -> TaskFilter:
    """Open tasks due from the reference day through ``days`` days later."""
    today = _reference_day(reference)
    return _due_between(today, today + timedelta(days=days))


def combine_filters(filters: Sequence[TaskFilter]) -> TaskFilter:
    """AND; an empty list matches every task."""
    filters = list(filters)
    return lambda task: all(f(task) for f in filters)


def combine_filters_or(filters: Sequence[TaskFilter]) -> TaskFilter:
    """OR; an empty list matches no task."""
    filters = list(filters)
    return lambda task: any(f(task) for f in filters)


def negate(task_filter: TaskFilter) -> TaskFilter:
    return lambda task: not task_filter(task)
