"""Scan markdown file content for tasks, tracking heading context."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date

from .dates import extract_date_from_heading
from .models import ParsingContext, ScanResult
from .parser import parse_line

RE_PROJECT = re.compile(r"(?:^|/)projects/([^/]+)")
RE_PERSON = re.compile(r"(?:^|/)1-1s/([^/]+)\.md$")


def _normalize_path(file_path: str) -> str:
    return file_path.replace("\\", "/")


def extract_project_from_path(file_path: str) -> str | None:
    """``projects/acme-app/notes.md`` -> ``acme-app``."""
    m = RE_PROJECT.search(_normalize_path(file_path))
    return m.group(1) if m else None


def extract_person_from_filename(file_path: str) -> str | None:
    """``1-1s/jane-doe.md`` -> ``jane-doe``."""
    m = RE_PERSON.search(_normalize_path(file_path))
    return m.group(1) if m else None


def context_for_path(file_path: str, reference_date: date | None = None) -> ParsingContext:
    return ParsingContext(
        project=extract_project_from_path(file_path),
        person=extract_person_from_filename(file_path),
        reference_date=reference_date,
    )


def scan_file(file_path: str, content: str, reference_date: date | None = None) -> ScanResult:
    """Extract tasks and warnings from one file's content.

    A heading that carries a date replaces the current date and heading for
    every following line until the next dated heading. Headings never produce
    tasks. Tasks above the first dated heading get no context date.
    ``reference_date`` dates year-less ``[due: M/D]`` markers outside a
    dated heading.
    """
    result = ScanResult(files_scanned=1)
    context = context_for_path(file_path, reference_date)

    for line_number, line in enumerate(content.split("\n"), start=1):
        line = line.rstrip("\r")
        if not line.strip():
            continue

        heading_date = extract_date_from_heading(line)
        if heading_date is not None:
            context = context.with_heading(heading_date, line.strip())
            continue

        parsed = parse_line(line, line_number, file_path, context)
        if parsed.task is not None:
            result.tasks.append(parsed.task)
        result.warnings.extend(parsed.warnings)

    return result


def scan_files(
    files: Iterable[tuple[str, str]], reference_date: date | None = None
) -> ScanResult:
    """Scan ``(path, content)`` pairs; each file starts with a fresh context."""
    combined = ScanResult()
    for file_path, content in files:
        combined.extend(scan_file(file_path, content, reference_date))
    return combined
