"""Edit task lines in markdown files in place."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from .models import ParsingContext, Task
from .parser import parse_line
from .patterns import COMPLETED_DATE, TASK_CHECKBOX, TODOIST_ID

logger = logging.getLogger(__name__)

RE_CHECKBOX_STATE = re.compile(r"^(\s*-\s+\[)[ xX](\])")
RE_TODOIST_MARKER = re.compile(r"\s*\[todoist:\s*\d+\s*\]", re.IGNORECASE)
RE_COMPLETED_MARKER = re.compile(r"\s*\[completed:\s*\d{4}-\d{2}-\d{2}\s*\]", re.IGNORECASE)
TEMP_SUFFIX = ".md2do.tmp"


@dataclass
class WriteResult:
    success: bool
    task: Task | None = None
    error: str | None = None


@dataclass
class LineUpdate:
    """Changes for one task line. ``replace_line`` wins over the others."""

    line: int
    completed: bool | None = None
    text: str | None = None
    replace_line: str | None = None
    completed_on: date | None = None
    unlink: bool = False


@dataclass
class BatchResult:
    updated: int = 0
    errors: list[tuple[int, str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def _split_eol(line: str) -> tuple[str, str]:
    stripped = line.rstrip("\r\n")
    return stripped, line[len(stripped):]


def _read_lines(path: Path) -> list[str]:
    # newline="" keeps \r\n line endings as written
    with path.open(encoding="utf-8", newline="") as f:
        return f.read().splitlines(keepends=True)


def _write_atomic(path: Path, content: str) -> None:
    tmp = path.with_name(path.name + TEMP_SUFFIX)
    try:
        tmp.write_text(content, encoding="utf-8", newline="")
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def _reparse(line: str, line_number: int, path: Path) -> Task | None:
    context = ParsingContext(reference_date=date.today())
    return parse_line(line, line_number, str(path), context).task


def set_checkbox(line: str, completed: bool, completed_on: date | None = None) -> str:
    """Tick or untick a task line.

    With ``completed_on``, ticking adds a ``[completed: ...]`` marker when the
    line has none. Unticking always drops the marker.
    """
    mark = "x" if completed else " "
    line = RE_CHECKBOX_STATE.sub(lambda m: f"{m.group(1)}{mark}{m.group(2)}", line, count=1)
    if completed:
        if completed_on is not None and not COMPLETED_DATE.search(line):
            line = f"{line.rstrip()} [completed: {completed_on.isoformat()}]"
    else:
        line = RE_COMPLETED_MARKER.sub("", line)
    return line


def replace_text(line: str, text: str) -> str:
    """Swap everything after the checkbox for ``text``."""
    m = TASK_CHECKBOX.match(line)
    if not m:
        return line
    return m.group(0) + text


def set_todoist_id(line: str, todoist_id: str) -> str:
    """Add or replace the ``[todoist:ID]`` marker on a line."""
    if TODOIST_ID.search(line):
        return TODOIST_ID.sub(f"[todoist:{todoist_id}]", line, count=1)
    return f"{line.rstrip()} [todoist:{todoist_id}]"


def remove_todoist_id(line: str) -> str:
    return RE_TODOIST_MARKER.sub("", line)


def _apply(line: str, update: LineUpdate) -> str:
    if update.replace_line is not None:
        return update.replace_line
    if update.completed is not None:
        line = set_checkbox(line, update.completed, update.completed_on)
    if update.text is not None:
        line = replace_text(line, update.text)
    if update.unlink:
        line = remove_todoist_id(line)
    return line


def _check_target(lines: list[str], line_number: int) -> str | None:
    """Return an error message if ``line_number`` is not an editable task."""
    if line_number < 1 or line_number > len(lines):
        return f"Invalid line number {line_number}. File has {len(lines)} lines."
    content, _ = _split_eol(lines[line_number - 1])
    if not TASK_CHECKBOX.match(content):
        return f"Line {line_number} is not a task: {content}"
    return None


def update_task(
    path: str | Path,
    line: int,
    completed: bool | None = None,
    text: str | None = None,
    replace_line: str | None = None,
    completed_on: date | None = None,
) -> WriteResult:
    """Rewrite one task line and return the re-parsed task."""
    path = Path(path)
    update = LineUpdate(
        line=line,
        completed=completed,
        text=text,
        replace_line=replace_line,
        completed_on=completed_on,
    )
    try:
        lines = _read_lines(path)
        error = _check_target(lines, line)
        if error:
            return WriteResult(success=False, error=error)

        original, eol = _split_eol(lines[line - 1])
        updated = _apply(original, update)
        lines[line - 1] = updated + eol
        _write_atomic(path, "".join(lines))
        logger.debug("[WRITEBACK] %s:%d %r -> %r", path, line, original, updated)
    except OSError as e:
        logger.error("Failed to update task in %s: %s", path, e)
        return WriteResult(success=False, error=f"Failed to update task: {e}")

    return WriteResult(success=True, task=_reparse(updated, line, path))


def update_tasks(path: str | Path, updates: list[LineUpdate]) -> BatchResult:
    """Apply several line updates with one read and one write."""
    path = Path(path)
    result = BatchResult()
    try:
        lines = _read_lines(path)
        for update in sorted(updates, key=lambda u: u.line):
            error = _check_target(lines, update.line)
            if error:
                result.errors.append((update.line, error))
                continue
            original, eol = _split_eol(lines[update.line - 1])
            lines[update.line - 1] = _apply(original, update) + eol
            result.updated += 1
        if result.updated:
            _write_atomic(path, "".join(lines))
    except OSError as e:
        logger.error("Failed to update tasks in %s: %s", path, e)
        result.errors.append((0, f"Failed to update tasks: {e}"))
    return result


def add_task(
    path: str | Path,
    text: str,
    line: int | None = None,
    completed: bool = False,
) -> WriteResult:
    """Insert a task at ``line`` (1-indexed) or append it to the file."""
    path = Path(path)
    task_line = f"- [{'x' if completed else ' '}] {text}"
    try:
        lines = _read_lines(path) if path.exists() else []
        eol = "\r\n" if lines and lines[0].endswith("\r\n") else "\n"

        if line is not None:
            if line < 1 or line > len(lines) + 1:
                return WriteResult(success=False, error=f"Invalid line number {line}")
            if line == len(lines) + 1 and lines and not lines[-1].endswith("\n"):
                lines[-1] += eol
            lines.insert(line - 1, task_line + eol)
            inserted_at = line
        else:
            if lines and not lines[-1].endswith("\n"):
                lines[-1] += eol
            lines.append(task_line + eol)
            inserted_at = len(lines)

        _write_atomic(path, "".join(lines))
    except OSError as e:
        logger.error("Failed to add task to %s: %s", path, e)
        return WriteResult(success=False, error=f"Failed to add task: {e}")

    return WriteResult(success=True, task=_reparse(task_line, inserted_at, path))


def writeback_todoist_ids(path: str | Path, id_map: dict[int, str]) -> bool:
    """Write ``[todoist:ID]`` markers onto task lines.

    Args:
        path: Markdown file to edit
        id_map: Mapping of 1-indexed line number -> Todoist task id

    Returns:
        True if the file was modified, False if no changes needed.
    """
    if not id_map:
        return False

    path = Path(path)
    lines = _read_lines(path)
    modified = False

    for line_number, todoist_id in sorted(id_map.items()):
        if _check_target(lines, line_number):
            logger.warning(
                "[WRITEBACK] %s:%d is no longer a task; skipping id %s",
                path, line_number, todoist_id,
            )
            continue
        original, eol = _split_eol(lines[line_number - 1])
        updated = set_todoist_id(original, todoist_id)
        if updated == original:
            logger.debug("[WRITEBACK] %s:%d already has id %s", path, line_number, todoist_id)
            continue
        lines[line_number - 1] = updated + eol
        modified = True
        logger.debug("[WRITEBACK] %s:%d set id %s", path, line_number, todoist_id)

    if modified:
        _write_atomic(path, "".join(lines))
    return modified
