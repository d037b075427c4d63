"""CLI entry point for md2do."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

import httpx

from . import filters, sorting
from .config import Config, ConfigError, load_config
from .diagnostics import PRESETS, filter_warnings, get_preset, group_warnings_by_severity
from .files import scan_directory
from .formatters import (
    PRIORITY_MARKS,
    STATS_FIELDS,
    format_as_json,
    format_as_text,
    format_stats,
    format_todoist_json,
    format_todoist_text,
    format_warnings,
)
from .models import ScanResult
from .scanner import scan_file
from .sync import (
    DIRECTIONS,
    TODOIST_PRIORITY,
    execute_sync,
    new_task_params,
    task_to_todoist_params,
)
from .todoist import TodoistClient
from .writeback import add_task, set_todoist_id, update_task

logger = logging.getLogger(__name__)


def _add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--path", "-p",
        type=str,
        default=".",
        help="Directory to scan (default: current directory)",
    )
    parser.add_argument(
        "--pattern",
        type=str,
        default=None,
        help="Glob pattern for markdown files (default: **/*.md)",
    )
    parser.add_argument(
        "--exclude",
        nargs="+",
        default=None,
        help="Glob patterns to exclude, relative to --path",
    )
    parser.add_argument(
        "--warnings",
        choices=sorted(PRESETS),
        default=None,
        help="Warning preset (overrides the config file)",
    )


def _add_token_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--token",
        type=str,
        default=None,
        help="Todoist API token (or set TODOIST_API_TOKEN env var)",
    )


def _add_todoist_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--path", "-p",
        type=str,
        default=".",
        help="Directory holding .md2do.json (default: current directory)",
    )
    _add_token_argument(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="md2do",
        description="Find, filter and sync tasks written as markdown checkboxes.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List tasks")
    _add_scan_arguments(list_cmd)
    status = list_cmd.add_mutually_exclusive_group()
    status.add_argument("--completed", action="store_true", help="Only completed tasks")
    status.add_argument("--incomplete", action="store_true", help="Only incomplete tasks")
    list_cmd.add_argument("--assignee", "-a", help="Filter by assignee")
    list_cmd.add_argument(
        "--mine",
        action="store_true",
        help="Filter by the configured default assignee",
    )
    list_cmd.add_argument(
        "--priority",
        choices=sorted(sorting.PRIORITY_ORDER),
        help="Filter by priority",
    )
    list_cmd.add_argument("--project", help="Filter by project")
    list_cmd.add_argument("--person", help="Filter by person (from 1-1 files)")
    list_cmd.add_argument("--tag", "-t", help="Filter by tag")
    list_cmd.add_argument("--in", dest="in_path", help="Only tasks under this file or directory")
    list_cmd.add_argument(
        "--no-recursive",
        action="store_true",
        help="With --in, skip subdirectories",
    )
    list_cmd.add_argument("--overdue", action="store_true", help="Only overdue tasks")
    list_cmd.add_argument("--due-today", action="store_true", help="Tasks due today")
    list_cmd.add_argument("--due-this-week", action="store_true", help="Tasks due this week")
    list_cmd.add_argument("--due-within", type=int, metavar="DAYS", help="Tasks due within N days")
    list_cmd.add_argument(
        "--sort", "-s",
        choices=sorted(sorting.SORT_FIELDS),
        default="file",
        help="Sort field (default: file)",
    )
    list_cmd.add_argument("--reverse", action="store_true", help="Reverse sort order")
    list_cmd.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default=None,
        help="Output format (default: text)",
    )
    list_cmd.add_argument("--no-paths", action="store_true", help="Hide file paths")
    list_cmd.add_argument(
        "--context",
        action="store_true",
        help="Show project, person and heading context",
    )

    stats_cmd = commands.add_parser("stats", help="Show task statistics")
    _add_scan_arguments(stats_cmd)
    stats_cmd.add_argument("--by", choices=STATS_FIELDS, help="Group counts by field")
    stats_cmd.add_argument("--assignee", "-a", help="Filter by assignee")
    stats_cmd.add_argument("--project", help="Filter by project")

    todoist_cmd = commands.add_parser("todoist", help="Todoist integration")
    todoist_commands = todoist_cmd.add_subparsers(dest="todoist_command", required=True)

    tlist_cmd = todoist_commands.add_parser("list", help="List active Todoist tasks")
    _add_todoist_arguments(tlist_cmd)
    tlist_cmd.add_argument("--project", help="Only tasks in this Todoist project")
    tlist_cmd.add_argument(
        "--limit",
        type=int,
        default=50,
        help="Maximum tasks to show (default: 50)",
    )
    tlist_cmd.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default=None,
        help="Output format (default: text)",
    )

    add_cmd = todoist_commands.add_parser("add", help="Create a Todoist task")
    _add_todoist_arguments(add_cmd)
    add_cmd.add_argument("content", help="Task content")
    add_cmd.add_argument("--project", help="Todoist project name (default: Inbox)")
    add_cmd.add_argument(
        "--priority",
        choices=sorted(TODOIST_PRIORITY),
        default="normal",
        help="Priority (default: normal)",
    )
    add_cmd.add_argument("--due", help="Due date in Todoist syntax, e.g. 'tomorrow' or 2026-02-01")
    add_cmd.add_argument("--labels", help="Comma-separated labels")
    add_cmd.add_argument(
        "--file",
        help="Also append the task, linked by id, to this markdown file",
    )

    import_cmd = todoist_commands.add_parser(
        "import", help="Create a Todoist task from a markdown task line"
    )
    _add_todoist_arguments(import_cmd)
    import_cmd.add_argument("location", metavar="FILE:LINE", help="Task location, e.g. notes.md:12")
    import_cmd.add_argument("--project", help="Todoist project name (default: Inbox)")

    sync_cmd = todoist_commands.add_parser("sync", help="Sync tasks with Todoist")
    _add_scan_arguments(sync_cmd)
    _add_token_argument(sync_cmd)
    sync_cmd.add_argument(
        "--direction",
        choices=DIRECTIONS,
        default="both",
        help="push, pull or both (default: both)",
    )
    sync_cmd.add_argument(
        "--project",
        type=str,
        default=None,
        help="Todoist project name for new tasks",
    )
    sync_cmd.add_argument(
        "--dry-run",
        action="store_true",
        help="Log what would happen without making changes",
    )

    return parser


def _scan(args: argparse.Namespace, config: Config) -> tuple[ScanResult, bool]:
    """Scan, print surviving warnings to stderr; report whether any is an error."""
    if args.pattern:
        config.pattern = args.pattern
    if args.exclude is not None:
        config.exclude = args.exclude
    if args.warnings:
        config.warnings = get_preset(args.warnings)

    root = Path(args.path)
    logger.info("Scanning %s ...", root)
    result = scan_directory(root, config.pattern, config.exclude)
    logger.info("Found %d tasks in %d files", result.total_tasks, result.files_scanned)

    warnings = filter_warnings(result.warnings, config.warnings)
    if warnings:
        print(format_warnings(warnings), file=sys.stderr)
    return result, bool(group_warnings_by_severity(warnings)["error"])


def _task_filters(args: argparse.Namespace, config: Config) -> list[filters.TaskFilter]:
    selected: list[filters.TaskFilter] = []
    if args.completed:
        selected.append(filters.by_completed(True))
    if args.incomplete:
        selected.append(filters.by_completed(False))
    assignee = args.assignee or (config.default_assignee if args.mine else None)
    if args.mine and not assignee:
        raise ConfigError("--mine needs defaultAssignee or MD2DO_DEFAULT_ASSIGNEE")
    if assignee:
        selected.append(filters.by_assignee(assignee))
    if args.priority:
        selected.append(filters.by_priority(args.priority))
    if args.project:
        selected.append(filters.by_project(args.project))
    if args.person:
        selected.append(filters.by_person(args.person))
    if args.tag:
        selected.append(filters.by_tag(args.tag))
    if args.in_path:
        selected.append(filters.by_path(args.in_path, recursive=not args.no_recursive))
    if args.overdue:
        selected.append(filters.is_overdue())
    if args.due_today:
        selected.append(filters.is_due_today())
    if args.due_this_week:
        selected.append(filters.is_due_this_week())
    if args.due_within is not None:
        selected.append(filters.is_due_within_days(args.due_within))
    return selected


def cmd_list(args: argparse.Namespace, config: Config) -> int:
    result, has_errors = _scan(args, config)
    task_filter = filters.combine_filters(_task_filters(args, config))
    tasks = [t for t in result.tasks if task_filter(t)]

    comparator = sorting.SORT_FIELDS[args.sort]()
    if args.reverse:
        comparator = sorting.reverse(comparator)
    tasks = sorting.sort_tasks(tasks, comparator)

    output_format = args.format or config.output_format
    if output_format == "json":
        print(format_as_json(tasks))
    else:
        print(format_as_text(tasks, show_paths=not args.no_paths, show_context=args.context))
    return 1 if has_errors else 0


def cmd_stats(args: argparse.Namespace, config: Config) -> int:
    result, has_errors = _scan(args, config)
    selected: list[filters.TaskFilter] = []
    if args.assignee:
        selected.append(filters.by_assignee(args.assignee))
    if args.project:
        selected.append(filters.by_project(args.project))
    tasks = list(filter(filters.combine_filters(selected), result.tasks))

    if args.by is None:
        print(f"Files scanned: {result.files_scanned}")
    print(format_stats(tasks, args.by))
    return 1 if has_errors else 0


def _todoist_client(args: argparse.Namespace, config: Config) -> TodoistClient:
    token = args.token or config.todoist_token
    if not token:
        raise ConfigError(
            "No Todoist token provided. Use --token, set TODOIST_API_TOKEN, "
            "or add todoist.apiToken to .md2do.json"
        )
    return TodoistClient(token=token)


def _project_id(client: TodoistClient, explicit: str | None, default: str | None) -> str | None:
    """Resolve a project name to its id.

    A project named on the command line must exist. A missing default is
    logged and ignored, leaving Todoist to pick its inbox.
    """
    name = explicit or default
    if not name:
        return None
    project = client.find_project_by_name(name)
    if project is not None:
        return project.id
    if explicit:
        raise ConfigError(f"Todoist project not found: {name}")
    logger.warning("Todoist project not found: %s", name)
    return None


def _parse_location(location: str) -> tuple[Path, int]:
    file, sep, line = location.rpartition(":")
    if not sep or not file or not line.isdigit():
        raise ConfigError(f"Expected FILE:LINE, got {location!r}")
    return Path(file), int(line)


def cmd_todoist_list(args: argparse.Namespace, config: Config) -> int:
    client = _todoist_client(args, config)
    try:
        project_id = _project_id(client, args.project, config.todoist_project)
        tasks = client.list_tasks(project_id)
    except httpx.HTTPError as e:
        logging.error("Todoist request failed: %s", e)
        return 1
    finally:
        client.close()

    if args.limit >= 0:
        tasks = tasks[: args.limit]
    output_format = args.format or config.output_format
    if output_format == "json":
        print(format_todoist_json(tasks))
    else:
        print(format_todoist_text(tasks))
    return 0


def cmd_todoist_add(args: argparse.Namespace, config: Config) -> int:
    labels = args.labels.split(",") if args.labels else None
    client = _todoist_client(args, config)
    try:
        project_id = _project_id(client, args.project, config.todoist_project or "Inbox")
        created = client.create_task(
            new_task_params(args.content, args.priority, args.due, labels, project_id)
        )
    except httpx.HTTPError as e:
        logging.error("Todoist request failed: %s", e)
        return 1
    finally:
        client.close()

    logging.info("Created Todoist task %s: %s", created.id, created.content)
    print(created.id)

    if args.file:
        parts = [args.content, PRIORITY_MARKS.get(args.priority, "")]
        parts.extend(f"#{label}" for label in created.labels)
        if created.due_date:
            parts.append(f"[due: {created.due_date.isoformat()}]")
        parts.append(f"[todoist:{created.id}]")
        text = " ".join(p for p in parts if p)
        written = add_task(args.file, text)
        if not written.success:
            logging.error("%s", written.error)
            return 1
        logging.info("Added task to %s:%d", args.file, written.task.line)
    return 0


def cmd_todoist_import(args: argparse.Namespace, config: Config) -> int:
    path, line = _parse_location(args.location)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        logging.error("Could not read %s: %s", path, e)
        return 1

    scanned = scan_file(str(path), content, date.today())
    task = next((t for t in scanned.tasks if t.line == line), None)
    if task is None:
        logging.error("%s:%d is not a task", path, line)
        return 1
    if task.todoist_id:
        logging.error("%s:%d is already linked to Todoist task %s", path, line, task.todoist_id)
        return 1

    client = _todoist_client(args, config)
    try:
        project_id = _project_id(client, args.project, config.todoist_project or "Inbox")
        created = client.create_task(task_to_todoist_params(task, project_id))
    except httpx.HTTPError as e:
        logging.error("Todoist request failed: %s", e)
        return 1
    finally:
        client.close()

    original = content.split("\n")[line - 1].rstrip("\r")
    written = update_task(path, line, replace_line=set_todoist_id(original, created.id))
    if not written.success:
        logging.error(
            "Created Todoist task %s but could not link it: %s", created.id, written.error
        )
        return 1
    logging.info("Imported %s:%d as Todoist task %s", path, line, created.id)
    print(created.id)
    return 0


def cmd_todoist_sync(args: argparse.Namespace, config: Config) -> int:
    client = _todoist_client(args, config)
    try:
        result, _ = _scan(args, config)
        project_id = None
        project_name = args.project or config.todoist_project
        if project_name:
            project = client.find_project_by_name(project_name)
            if project is None:
                logging.error("Todoist project not found: %s", project_name)
                return 1
            project_id = project.id

        sync_result = execute_sync(
            client=client,
            tasks=result.tasks,
            root=args.path,
            direction=args.direction,
            project_id=project_id,
            dry_run=args.dry_run,
        )
    except httpx.HTTPError as e:
        logging.error("Todoist request failed: %s", e)
        return 1
    finally:
        client.close()

    logging.info(
        "Sync complete: %d created, %d updated, %d pushed, %d pulled, %d unlinked, %d unchanged",
        sync_result.created,
        sync_result.updated,
        sync_result.pushed,
        sync_result.pulled,
        sync_result.unlinked,
        sync_result.unchanged,
    )
    if sync_result.errors:
        logging.warning("Errors encountered:")
        for err in sync_result.errors:
            logging.warning("  - %s", err)
    return 1 if sync_result.errors else 0


TODOIST_COMMANDS = {
    "list": cmd_todoist_list,
    "add": cmd_todoist_add,
    "import": cmd_todoist_import,
    "sync": cmd_todoist_sync,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # list/stats write results to stdout; progress chatter only for todoist commands
    if args.verbose:
        level = logging.DEBUG
    elif args.command == "todoist":
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(message)s",
    )

    try:
        config = load_config(args.path)
        if args.command == "list":
            return cmd_list(args, config)
        if args.command == "stats":
            return cmd_stats(args, config)
        return TODOIST_COMMANDS[args.todoist_command](args, config)
    except ConfigError as e:
        logging.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
