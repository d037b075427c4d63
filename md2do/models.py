"""Data models for tasks parsed from markdown files."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Literal

Priority = Literal["urgent", "high", "normal", "low"]
Severity = Literal["error", "warning", "info"]

RULE_UNSUPPORTED_BULLET = "unsupported-bullet"
RULE_MALFORMED_CHECKBOX = "malformed-checkbox"
RULE_MISSING_SPACE_AFTER = "missing-space-after"
RULE_MISSING_SPACE_BEFORE = "missing-space-before"
RULE_RELATIVE_DATE_NO_CONTEXT = "relative-date-no-context"
RULE_MISSING_DUE_DATE = "missing-due-date"
RULE_MISSING_COMPLETED_DATE = "missing-completed-date"
RULE_DUPLICATE_TODOIST_ID = "duplicate-todoist-id"
RULE_FILE_READ_ERROR = "file-read-error"

RULE_IDS = (
    RULE_UNSUPPORTED_BULLET,
    RULE_MALFORMED_CHECKBOX,
    RULE_MISSING_SPACE_AFTER,
    RULE_MISSING_SPACE_BEFORE,
    RULE_RELATIVE_DATE_NO_CONTEXT,
    RULE_MISSING_DUE_DATE,
    RULE_MISSING_COMPLETED_DATE,
    RULE_DUPLICATE_TODOIST_ID,
    RULE_FILE_READ_ERROR,
)

DEFAULT_SEVERITY: dict[str, Severity] = {
    RULE_UNSUPPORTED_BULLET: "warning",
    RULE_MALFORMED_CHECKBOX: "warning",
    RULE_MISSING_SPACE_AFTER: "warning",
    RULE_MISSING_SPACE_BEFORE: "warning",
    RULE_RELATIVE_DATE_NO_CONTEXT: "warning",
    RULE_MISSING_DUE_DATE: "info",
    RULE_MISSING_COMPLETED_DATE: "info",
    RULE_DUPLICATE_TODOIST_ID: "error",
    RULE_FILE_READ_ERROR: "error",
}


@dataclass(frozen=True)
class Task:
    """A single checkbox line parsed from a markdown file.

    Optional fields are ``None`` when nothing was extracted for them. A task
    without a priority marker has ``priority=None``, which sorts and filters
    as "low".
    """

    id: str
    text: str
    completed: bool
    file: str
    line: int
    tags: tuple[str, ...] = ()
    project: str | None = None
    person: str | None = None
    context_date: date | None = None
    context_heading: str | None = None
    assignee: str | None = None
    due_date: date | None = None
    priority: Priority | None = None
    todoist_id: str | None = None
    completed_date: date | None = None

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}"

    def to_dict(self) -> dict:
        """Return a JSON-ready dict; optional keys only appear when set."""
        d: dict = {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "file": self.file,
            "line": self.line,
        }
        if self.project is not None:
            d["project"] = self.project
        if self.person is not None:
            d["person"] = self.person
        if self.assignee is not None:
            d["assignee"] = self.assignee
        if self.priority is not None:
            d["priority"] = self.priority
        if self.due_date is not None:
            d["dueDate"] = self.due_date.isoformat()
        d["tags"] = list(self.tags)
        if self.todoist_id is not None:
            d["todoistId"] = self.todoist_id
        if self.completed_date is not None:
            d["completedDate"] = self.completed_date.isoformat()
        if self.context_date is not None:
            d["contextDate"] = self.context_date.isoformat()
        if self.context_heading is not None:
            d["contextHeading"] = self.context_heading
        return d


@dataclass(frozen=True)
class ParsingContext:
    """Per-file defaults threaded through the lines of one scan.

    ``reference_date`` supplies the year for ``[due: M/D]`` markers when no
    dated heading is in effect. The parser never reads the clock itself.
    """

    project: str | None = None
    person: str | None = None
    current_date: date | None = None
    current_heading: str | None = None
    reference_date: date | None = None

    def with_heading(self, heading_date: date, heading: str) -> ParsingContext:
        return replace(self, current_date=heading_date, current_heading=heading)


@dataclass(frozen=True)
class ScanWarning:
    """A non-fatal diagnostic about one line of a scanned file."""

    file: str
    line: int
    rule_id: str
    message: str
    text: str = ""
    severity: Severity = "warning"

    @classmethod
    def for_rule(
        cls, rule_id: str, file: str, line: int, message: str, text: str = ""
    ) -> ScanWarning:
        return cls(
            file=file,
            line=line,
            rule_id=rule_id,
            message=message,
            text=text,
            severity=DEFAULT_SEVERITY.get(rule_id, "warning"),
        )

    def to_dict(self) -> dict:
        return {
            "file": self.file,
            "line": self.line,
            "severity": self.severity,
            "ruleId": self.rule_id,
            "message": self.message,
            "text": self.text,
        }


@dataclass
class ScanResult:
    """Tasks and warnings collected from one or more files."""

    tasks: list[Task] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)
    files_scanned: int = 0

    @property
    def total_tasks(self) -> int:
        return len(self.tasks)

    def extend(self, other: ScanResult) -> None:
        self.tasks.extend(other.tasks)
        self.warnings.extend(other.warnings)
        self.files_scanned += other.files_scanned
