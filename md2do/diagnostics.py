"""Warning rule presets, filtering and grouping."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal

from .models import (
    RULE_DUPLICATE_TODOIST_ID,
    RULE_FILE_READ_ERROR,
    RULE_MALFORMED_CHECKBOX,
    RULE_MISSING_COMPLETED_DATE,
    RULE_MISSING_DUE_DATE,
    RULE_MISSING_SPACE_AFTER,
    RULE_MISSING_SPACE_BEFORE,
    RULE_RELATIVE_DATE_NO_CONTEXT,
    RULE_UNSUPPORTED_BULLET,
    ScanWarning,
    Severity,
)

RuleLevel = Literal["error", "warn", "info", "off"]
RULE_LEVELS = ("error", "warn", "info", "off")

_LEVEL_TO_SEVERITY: dict[str, Severity] = {
    "error": "error",
    "warn": "warning",
    "info": "info",
}


@dataclass
class WarningConfig:
    enabled: bool = True
    rules: dict[str, RuleLevel] = field(default_factory=dict)


# Syntax checks on, metadata completeness off. Used when nothing is configured.
PRESET_RECOMMENDED = WarningConfig(
    enabled=True,
    rules={
        RULE_UNSUPPORTED_BULLET: "warn",
        RULE_MALFORMED_CHECKBOX: "warn",
        RULE_MISSING_SPACE_AFTER: "warn",
        RULE_MISSING_SPACE_BEFORE: "warn",
        RULE_RELATIVE_DATE_NO_CONTEXT: "warn",
        RULE_MISSING_DUE_DATE: "off",
        RULE_MISSING_COMPLETED_DATE: "off",
        RULE_DUPLICATE_TODOIST_ID: "error",
        RULE_FILE_READ_ERROR: "error",
    },
)

PRESET_STRICT = WarningConfig(
    enabled=True,
    rules={
        RULE_UNSUPPORTED_BULLET: "error",
        RULE_MALFORMED_CHECKBOX: "error",
        RULE_MISSING_SPACE_AFTER: "error",
        RULE_MISSING_SPACE_BEFORE: "error",
        RULE_RELATIVE_DATE_NO_CONTEXT: "error",
        RULE_MISSING_DUE_DATE: "warn",
        RULE_MISSING_COMPLETED_DATE: "warn",
        RULE_DUPLICATE_TODOIST_ID: "error",
        RULE_FILE_READ_ERROR: "error",
    },
)

PRESETS = {
    "recommended": PRESET_RECOMMENDED,
    "strict": PRESET_STRICT,
}


def get_preset(name: str) -> WarningConfig:
    """Return a copy of a named preset; unknown names raise KeyError."""
    preset = PRESETS[name]
    return WarningConfig(enabled=preset.enabled, rules=dict(preset.rules))


def filter_warnings(
    warnings: list[ScanWarning], config: WarningConfig | None = None
) -> list[ScanWarning]:
    """Apply rule levels to a list of warnings.

    Rules set to ``off`` are dropped and other configured levels replace the
    warning's severity. Rules missing from the config pass through.
    """
    if config is None:
        return list(warnings)
    if not config.enabled:
        return []

    kept: list[ScanWarning] = []
    for warning in warnings:
        level = config.rules.get(warning.rule_id)
        if level is None:
            kept.append(warning)
        elif level != "off":
            kept.append(replace(warning, severity=_LEVEL_TO_SEVERITY[level]))
    return kept


def group_warnings_by_severity(warnings: list[ScanWarning]) -> dict[str, list[ScanWarning]]:
    groups: dict[str, list[ScanWarning]] = {"error": [], "warning": [], "info": []}
    for warning in warnings:
        groups.setdefault(warning.severity, []).append(warning)
    return groups
