"""Find and scan markdown files on disk."""

from __future__ import annotations

import fnmatch
import logging
import time
from datetime import date
from pathlib import Path

from .models import RULE_DUPLICATE_TODOIST_ID, RULE_FILE_READ_ERROR, ScanResult, ScanWarning, Task
from .scanner import scan_file

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "**/*.md"
DEFAULT_EXCLUDE = (
    "node_modules/**",
    ".git/**",
    "dist/**",
    "build/**",
    ".next/**",
)


def _is_excluded(rel_path: str, exclude: tuple[str, ...] | list[str]) -> bool:
    for pattern in exclude:
        if fnmatch.fnmatch(rel_path, pattern) or fnmatch.fnmatch(rel_path, f"*/{pattern}"):
            return True
    return False


def find_markdown_files(
    root: str | Path,
    pattern: str = DEFAULT_PATTERN,
    exclude: tuple[str, ...] | list[str] = DEFAULT_EXCLUDE,
) -> list[str]:
    """Return root-relative POSIX paths of matching files, sorted."""
    root_path = Path(root)
    found: list[str] = []
    for path in root_path.glob(pattern):
        if not path.is_file():
            continue
        rel = path.relative_to(root_path).as_posix()
        if _is_excluded(rel, exclude):
            continue
        found.append(rel)
    return sorted(found)


def find_duplicate_todoist_ids(tasks: list[Task]) -> list[ScanWarning]:
    """Warn for every task after the first that reuses a Todoist id."""
    first_seen: dict[str, Task] = {}
    warnings: list[ScanWarning] = []
    for task in tasks:
        if task.todoist_id is None:
            continue
        original = first_seen.setdefault(task.todoist_id, task)
        if original is task:
            continue
        warnings.append(
            ScanWarning.for_rule(
                RULE_DUPLICATE_TODOIST_ID,
                task.file,
                task.line,
                f"Todoist id {task.todoist_id} is already used by {original.location}.",
                task.text,
            )
        )
    return warnings


def scan_directory(
    root: str | Path,
    pattern: str = DEFAULT_PATTERN,
    exclude: tuple[str, ...] | list[str] = DEFAULT_EXCLUDE,
    reference_date: date | None = None,
) -> ScanResult:
    """Scan every markdown file under ``root``.

    Task paths are relative to ``root``. Unreadable files become
    ``file-read-error`` warnings and the scan carries on. Year-less due
    dates take their year from ``reference_date``, today by default.
    """
    started = time.monotonic()
    root_path = Path(root)
    reference_date = reference_date or date.today()
    result = ScanResult()

    for rel in find_markdown_files(root_path, pattern, exclude):
        try:
            content = (root_path / rel).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", rel, e)
            result.warnings.append(
                ScanWarning.for_rule(
                    RULE_FILE_READ_ERROR, rel, 0, f"Failed to read file: {e}"
                )
            )
            result.files_scanned += 1
            continue

        file_result = scan_file(rel, content, reference_date)
        logger.debug(
            "Scanned %s: %d tasks, %d warnings",
            rel,
            len(file_result.tasks),
            len(file_result.warnings),
        )
        result.extend(file_result)

    result.warnings.extend(find_duplicate_todoist_ids(result.tasks))
    logger.debug(
        "Scanned %d files under %s in %.3fs: %d tasks",
        result.files_scanned,
        root_path,
        time.monotonic() - started,
        result.total_tasks,
    )
    return result
