"""Sync engine: reconciles markdown tasks with Todoist."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Literal

import httpx

from .models import Task
from .todoist import TodoistClient, TodoistTask
from .writeback import LineUpdate, update_tasks, writeback_todoist_ids

logger = logging.getLogger(__name__)

Direction = Literal["push", "pull", "both"]
DIRECTIONS = ("push", "pull", "both")

# md2do urgent/high/normal/low <-> Todoist 4/3/2/1
TODOIST_PRIORITY = {"urgent": 4, "high": 3, "normal": 2, "low": 1}


@dataclass
class SyncPlan:
    """Describes what the sync will do, without executing it."""

    create: list[Task] = field(default_factory=list)
    update: list[tuple[Task, TodoistTask]] = field(default_factory=list)
    push: list[tuple[Task, TodoistTask]] = field(default_factory=list)  # remote completion <- markdown
    pull: list[tuple[Task, TodoistTask]] = field(default_factory=list)  # markdown completion <- remote
    unlink: list[Task] = field(default_factory=list)  # deleted in Todoist
    unchanged: list[Task] = field(default_factory=list)


@dataclass
class SyncResult:
    """Summary of what the sync actually did."""

    created: int = 0
    updated: int = 0
    pushed: int = 0
    pulled: int = 0
    unlinked: int = 0
    unchanged: int = 0
    errors: list[str] = field(default_factory=list)
    created_ids: dict[str, str] = field(default_factory=dict)  # "file:line" -> todoist id


def to_todoist_priority(priority: str | None) -> int:
    return TODOIST_PRIORITY.get(priority or "low", 1)


def task_to_todoist_params(task: Task, project_id: str | None = None) -> dict:
    """Build the create/update payload for a markdown task."""
    params: dict = {
        "content": task.text,
        "priority": to_todoist_priority(task.priority),
    }
    if task.tags:
        params["labels"] = list(dict.fromkeys(task.tags))
    if task.due_date:
        params["due_date"] = task.due_date.isoformat()
    if project_id:
        params["project_id"] = project_id
    return params


def new_task_params(
    content: str,
    priority: str | None = "normal",
    due: str | None = None,
    labels: list[str] | None = None,
    project_id: str | None = None,
) -> dict:
    """Build the create payload for a task typed on the command line.

    ``due`` is passed as Todoist's ``due_string``, so "tomorrow" or
    "next friday" are resolved by Todoist.
    """
    params: dict = {
        "content": content,
        "priority": to_todoist_priority(priority),
    }
    cleaned = [label.strip() for label in labels or [] if label.strip()]
    if cleaned:
        params["labels"] = list(dict.fromkeys(cleaned))
    if due:
        params["due_string"] = due
    if project_id:
        params["project_id"] = project_id
    return params


def _needs_update(task: Task, remote: TodoistTask) -> bool:
    """Check if a linked task's content differs from Todoist."""
    if task.text != remote.content:
        logger.debug("  [DIFF] %s content: %r != %r", task.location, task.text, remote.content)
        return True
    if to_todoist_priority(task.priority) != remote.priority:
        logger.debug(
            "  [DIFF] %s priority: %s != %s",
            task.location, to_todoist_priority(task.priority), remote.priority,
        )
        return True
    if sorted(set(task.tags)) != sorted(set(remote.labels)):
        logger.debug("  [DIFF] %s labels: %r != %r", task.location, task.tags, remote.labels)
        return True
    if task.due_date and task.due_date != remote.due_date:
        logger.debug("  [DIFF] %s due: %s != %s", task.location, task.due_date, remote.due_date)
        return True
    return False


def build_sync_plan(
    tasks: list[Task],
    remote: dict[str, TodoistTask | None],
    direction: Direction = "both",
) -> SyncPlan:
    """Compare markdown tasks to their Todoist counterparts.

    Args:
        tasks: Scanned markdown tasks
        remote: Todoist id -> fetched task, or None when Todoist no longer
                has it. Linked tasks whose id is absent are left alone.
        direction: "push" makes Todoist follow markdown, "pull" makes
                   markdown follow Todoist, "both" pushes content and new
                   tasks while Todoist wins on completion.
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown sync direction: {direction!r}")
    plan = SyncPlan()
    pushing = direction in ("push", "both")
    pulling = direction in ("pull", "both")

    for task in tasks:
        if task.todoist_id is None:
            if pushing and not task.completed:
                plan.create.append(task)
            continue

        if task.todoist_id not in remote:
            continue

        remote_task = remote[task.todoist_id]
        if remote_task is None:
            if pulling:
                plan.unlink.append(task)
            else:
                logger.warning(
                    "Task %s references Todoist id %s which was not found",
                    task.location, task.todoist_id,
                )
                plan.unchanged.append(task)
            continue

        if task.completed != remote_task.is_completed:
            if pulling:
                plan.pull.append((task, remote_task))
            else:
                plan.push.append((task, remote_task))
        elif pushing and not task.completed and _needs_update(task, remote_task):
            plan.update.append((task, remote_task))
        else:
            plan.unchanged.append(task)

    return plan


def fetch_linked_tasks(
    client: TodoistClient, tasks: list[Task], result: SyncResult
) -> dict[str, TodoistTask | None]:
    """Fetch every referenced Todoist task; failures are recorded and skipped."""
    remote: dict[str, TodoistTask | None] = {}
    for todoist_id in dict.fromkeys(t.todoist_id for t in tasks if t.todoist_id):
        try:
            remote[todoist_id] = client.get_task(todoist_id)
        except httpx.HTTPError as e:
            msg = f"Failed to fetch Todoist task {todoist_id}: {e}"
            logger.error(msg)
            result.errors.append(msg)
    return remote


def execute_sync(
    client: TodoistClient,
    tasks: list[Task],
    root: str | Path,
    direction: Direction = "both",
    project_id: str | None = None,
    dry_run: bool = False,
    today: date | None = None,
) -> SyncResult:
    """Execute a sync between scanned markdown tasks and Todoist.

    Args:
        client: Authenticated Todoist client
        tasks: Tasks scanned from ``root``; their paths are relative to it
        root: Directory the task paths are relative to
        direction: "push", "pull" or "both"
        project_id: Todoist project for newly created tasks
        dry_run: If True, only log what would happen without making changes
        today: Completion date written when pulling a completion
    """
    root = Path(root)
    today = today or date.today()
    result = SyncResult()

    logger.info("Fetching linked Todoist tasks...")
    remote = fetch_linked_tasks(client, tasks, result)
    plan = build_sync_plan(tasks, remote, direction)

    logger.info(
        "Sync plan: %d create, %d update, %d push, %d pull, %d unlink, %d unchanged",
        len(plan.create),
        len(plan.update),
        len(plan.push),
        len(plan.pull),
        len(plan.unlink),
        len(plan.unchanged),
    )

    if dry_run:
        _log_dry_run(plan)
        result.created = len(plan.create)
        result.updated = len(plan.update)
        result.pushed = len(plan.push)
        result.pulled = len(plan.pull)
        result.unlinked = len(plan.unlink)
        result.unchanged = len(plan.unchanged)
        return result

    new_ids: dict[str, dict[int, str]] = defaultdict(dict)
    for task in plan.create:
        try:
            created = client.create_task(task_to_todoist_params(task, project_id))
            logger.info("Created Todoist task %s for %s", created.id, task.location)
            new_ids[task.file][task.line] = created.id
            result.created_ids[task.location] = created.id
            result.created += 1
        except httpx.HTTPError as e:
            msg = f"Failed to create '{task.text}' ({task.location}): {e}"
            logger.error(msg)
            result.errors.append(msg)

    for task, remote_task in plan.update:
        try:
            client.update_task(remote_task.id, task_to_todoist_params(task))
            logger.info("Updated Todoist task %s from %s", remote_task.id, task.location)
            result.updated += 1
        except httpx.HTTPError as e:
            msg = f"Failed to update '{task.text}' ({task.location}): {e}"
            logger.error(msg)
            result.errors.append(msg)

    for task, remote_task in plan.push:
        try:
            if task.completed:
                client.close_task(remote_task.id)
            else:
                client.reopen_task(remote_task.id)
            logger.info(
                "%s Todoist task %s", "Closed" if task.completed else "Reopened", remote_task.id
            )
            result.pushed += 1
        except httpx.HTTPError as e:
            msg = f"Failed to push completion for {task.location}: {e}"
            logger.error(msg)
            result.errors.append(msg)

    line_updates: dict[str, list[LineUpdate]] = defaultdict(list)
    for task, remote_task in plan.pull:
        line_updates[task.file].append(
            LineUpdate(line=task.line, completed=remote_task.is_completed, completed_on=today)
        )
    for task in plan.unlink:
        line_updates[task.file].append(LineUpdate(line=task.line, unlink=True))

    for file, updates in line_updates.items():
        batch = update_tasks(root / file, updates)
        for line, error in batch.errors:
            msg = f"Failed to edit {file}:{line}: {error}"
            logger.error(msg)
            result.errors.append(msg)
        failed = {line for line, _ in batch.errors}
        if 0 in failed:
            # the file itself could not be read or written
            continue
        for update in updates:
            if update.line in failed:
                continue
            if update.unlink:
                result.unlinked += 1
            else:
                result.pulled += 1

    for file, id_map in new_ids.items():
        try:
            if writeback_todoist_ids(root / file, id_map):
                logger.info("Wrote %d Todoist id(s) back into %s", len(id_map), file)
        except OSError as e:
            msg = f"Failed to write Todoist ids into {file}: {e}"
            logger.error(msg)
            result.errors.append(msg)

    result.unchanged = len(plan.unchanged)
    return result


def _log_dry_run(plan: SyncPlan) -> None:
    """Log what a sync would do without executing."""
    for task in plan.create:
        logger.info("[DRY RUN] Would create: '%s' (%s)", task.text, task.location)
    for task, remote_task in plan.update:
        logger.info("[DRY RUN] Would update: '%s' (%s)", task.text, remote_task.id)
    for task, remote_task in plan.push:
        action = "close" if task.completed else "reopen"
        logger.info("[DRY RUN] Would %s in Todoist: '%s' (%s)", action, task.text, remote_task.id)
    for task, remote_task in plan.pull:
        action = "complete" if remote_task.is_completed else "reopen"
        logger.info("[DRY RUN] Would %s in markdown: %s", action, task.location)
    for task in plan.unlink:
        logger.info(
            "[DRY RUN] Would remove deleted Todoist id %s from %s", task.todoist_id, task.location
        )
    for task in plan.unchanged:
        logger.debug("[DRY RUN] Unchanged: %s (%s)", task.location, task.todoist_id)
