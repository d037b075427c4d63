"""Render tasks, warnings and statistics as text or JSON."""

from __future__ import annotations

import json
from collections import Counter

from .models import ScanWarning, Task
from .todoist import TodoistTask

PRIORITY_MARKS = {"urgent": "!!!", "high": "!!", "normal": "!"}
TODOIST_PRIORITY_MARKS = {4: "!!!", 3: "!!", 2: "!"}
STATS_FIELDS = ("assignee", "project", "person", "priority", "tag")


def format_as_json(tasks: list[Task]) -> str:
    completed = sum(1 for t in tasks if t.completed)
    out = {
        "tasks": [t.to_dict() for t in tasks],
        "metadata": {
            "total": len(tasks),
            "completed": completed,
            "incomplete": len(tasks) - completed,
        },
    }
    return json.dumps(out, indent=2)


def format_task(task: Task, show_paths: bool = True, show_context: bool = False) -> str:
    parts = ["[x]" if task.completed else "[ ]", task.text]
    if task.assignee:
        parts.append(f"@{task.assignee}")
    if task.priority in PRIORITY_MARKS:
        parts.append(PRIORITY_MARKS[task.priority])
    parts.extend(f"#{tag}" for tag in task.tags)
    if task.due_date:
        parts.append(f"(due {task.due_date.isoformat()})")
    line = " ".join(p for p in parts if p)
    if show_paths:
        line += f"  {task.location}"

    if show_context:
        context = []
        if task.project:
            context.append(f"project: {task.project}")
        if task.person:
            context.append(f"person: {task.person}")
        if task.context_heading:
            context.append(f"heading: {task.context_heading}")
        if context:
            line += "\n    " + ", ".join(context)
    return line


def format_as_text(
    tasks: list[Task], show_paths: bool = True, show_context: bool = False
) -> str:
    if not tasks:
        return "No tasks found."
    lines = [format_task(t, show_paths, show_context) for t in tasks]
    completed = sum(1 for t in tasks if t.completed)
    lines.append("")
    lines.append(f"{len(tasks)} tasks ({completed} completed, {len(tasks) - completed} incomplete)")
    return "\n".join(lines)


def format_warnings(warnings: list[ScanWarning]) -> str:
    return "\n".join(
        f"{w.file}:{w.line} [{w.severity}] {w.rule_id}: {w.message}" for w in warnings
    )


def _group_keys(task: Task, by: str) -> list[str]:
    if by == "tag":
        return list(dict.fromkeys(task.tags)) or ["(none)"]
    if by == "priority":
        return [task.priority or "low"]
    value = getattr(task, by)
    return [value or "(none)"]


def format_stats(tasks: list[Task], by: str | None = None) -> str:
    """Overall counts, or counts per value of ``by``."""
    if by is None:
        completed = sum(1 for t in tasks if t.completed)
        total = len(tasks)
        rate = (completed / total * 100) if total else 0.0
        return "\n".join(
            [
                f"Total tasks: {total}",
                f"Completed:   {completed}",
                f"Incomplete:  {total - completed}",
                f"Completion:  {rate:.0f}%",
            ]
        )

    if by not in STATS_FIELDS:
        raise ValueError(f"Cannot group by {by!r}; expected one of {', '.join(STATS_FIELDS)}")

    totals: Counter[str] = Counter()
    done: Counter[str] = Counter()
    for task in tasks:
        for key in _group_keys(task, by):
            totals[key] += 1
            if task.completed:
                done[key] += 1

    width = max([len(by)] + [len(k) for k in totals])
    lines = [f"{by.capitalize():<{width}}  total  done  open"]
    for key, count in sorted(totals.items(), key=lambda kv: (-kv[1], kv[0])):
        lines.append(f"{key:<{width}}  {count:>5}  {done[key]:>4}  {count - done[key]:>4}")
    return "\n".join(lines)


def format_todoist_task(task: TodoistTask) -> str:
    parts = ["[x]" if task.is_completed else "[ ]", task.content]
    mark = TODOIST_PRIORITY_MARKS.get(task.priority)
    if mark:
        parts.append(mark)
    parts.extend(f"#{label}" for label in task.labels)
    if task.due_date:
        parts.append(f"(due {task.due_date.isoformat()})")
    parts.append(f"[todoist:{task.id}]")
    return " ".join(parts)


def format_todoist_text(tasks: list[TodoistTask]) -> str:
    if not tasks:
        return "No Todoist tasks found."
    lines = [format_todoist_task(t) for t in tasks]
    lines.append("")
    lines.append(f"{len(tasks)} Todoist tasks")
    return "\n".join(lines)


def format_todoist_json(tasks: list[TodoistTask]) -> str:
    out = {
        "tasks": [
            {
                "id": t.id,
                "content": t.content,
                "is_completed": t.is_completed,
                "priority": t.priority,
                "labels": t.labels,
                "due_date": t.due_date.isoformat() if t.due_date else None,
                "project_id": t.project_id,
                "url": t.url,
            }
            for t in tasks
        ],
        "metadata": {"total": len(tasks)},
    }
    return json.dumps(out, indent=2)
