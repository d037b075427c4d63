"""Stable task identifiers."""

from __future__ import annotations

import hashlib

ID_LENGTH = 8


def generate_task_id(file: str, line: int, text: str) -> str:
    """Return an 8-character hex id for a task.

    The id is the truncated MD5 of ``file:line:text``, so the same task
    always gets the same id, and moving or editing it gives a new one.
    """
    content = f"{file}:{line}:{text}"
    return hashlib.md5(content.encode("utf-8")).hexdigest()[:ID_LENGTH]
