"""Extract, filter and sort tasks written as markdown checkboxes."""

from .models import ParsingContext, ScanResult, ScanWarning, Task
from .parser import clean_task_text, parse_line
from .scanner import scan_file, scan_files

__all__ = [
    "ParsingContext",
    "ScanResult",
    "ScanWarning",
    "Task",
    "clean_task_text",
    "parse_line",
    "scan_file",
    "scan_files",
]
