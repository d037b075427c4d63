"""Configuration loading: defaults, config files, then environment."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .diagnostics import PRESETS, RULE_LEVELS, WarningConfig, get_preset
from .files import DEFAULT_EXCLUDE, DEFAULT_PATTERN

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".md2do.json"
OUTPUT_FORMATS = ("text", "json")


class ConfigError(ValueError):
    """Raised for unreadable or invalid configuration values."""


@dataclass
class Config:
    pattern: str = DEFAULT_PATTERN
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE))
    default_assignee: str | None = None
    todoist_token: str | None = None
    todoist_project: str | None = None
    output_format: str = "text"
    warnings: WarningConfig = field(default_factory=lambda: get_preset("recommended"))


def _parse_warnings(raw: object) -> WarningConfig:
    """Accept a preset name, or an object with optional preset/enabled/rules."""
    if isinstance(raw, str):
        if raw not in PRESETS:
            raise ConfigError(f"Unknown warnings preset: {raw!r}")
        return get_preset(raw)
    if not isinstance(raw, dict):
        raise ConfigError("'warnings' must be a preset name or an object")

    preset_name = raw.get("preset", "recommended")
    if preset_name not in PRESETS:
        raise ConfigError(f"Unknown warnings preset: {preset_name!r}")
    config = get_preset(preset_name)

    if "enabled" in raw:
        config.enabled = bool(raw["enabled"])
    rules = raw.get("rules") or {}
    if not isinstance(rules, dict):
        raise ConfigError("'warnings.rules' must be an object")
    for rule_id, level in rules.items():
        if level not in RULE_LEVELS:
            raise ConfigError(f"Invalid level {level!r} for rule {rule_id!r}")
        config.rules[rule_id] = level
    return config


def _apply_file(config: Config, data: dict, source: Path) -> None:
    markdown = data.get("markdown") or {}
    if "pattern" in markdown:
        config.pattern = str(markdown["pattern"])
    if "exclude" in markdown:
        if not isinstance(markdown["exclude"], list):
            raise ConfigError(f"{source}: 'markdown.exclude' must be a list")
        config.exclude = [str(p) for p in markdown["exclude"]]

    if "defaultAssignee" in data:
        config.default_assignee = data["defaultAssignee"]

    todoist = data.get("todoist") or {}
    if "apiToken" in todoist:
        config.todoist_token = todoist["apiToken"]
    if "defaultProject" in todoist:
        config.todoist_project = todoist["defaultProject"]

    output = data.get("output") or {}
    if "format" in output:
        if output["format"] not in OUTPUT_FORMATS:
            raise ConfigError(f"{source}: unknown output format {output['format']!r}")
        config.output_format = output["format"]

    if "warnings" in data:
        config.warnings = _parse_warnings(data["warnings"])


def read_config_file(path: Path) -> dict | None:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be an object")
    logger.debug("Loaded config from %s", path)
    return data


def load_config(root: str | Path = ".", home: str | Path | None = None) -> Config:
    """Build the effective configuration for a scan rooted at ``root``.

    Later layers win: defaults, ``~/.md2do.json``, ``<root>/.md2do.json``,
    then the ``TODOIST_API_TOKEN`` and ``MD2DO_DEFAULT_ASSIGNEE`` variables.
    """
    config = Config()
    home_dir = Path(home) if home is not None else Path.home()
    candidates = [home_dir / CONFIG_FILE_NAME, Path(root) / CONFIG_FILE_NAME]

    seen: set[Path] = set()
    for path in candidates:
        resolved = path.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        data = read_config_file(path)
        if data is not None:
            _apply_file(config, data, path)

    token = os.environ.get("TODOIST_API_TOKEN")
    if token:
        config.todoist_token = token
    assignee = os.environ.get("MD2DO_DEFAULT_ASSIGNEE")
    if assignee:
        config.default_assignee = assignee

    return config
