"""Permission rule loader with YAML support.

Finds and reads the global and project rule files and materializes the
merged, source-tagged rule list the permission engine consumes. The
loader only reads; adding or removing rules is left to the rule store
that owns these files.

Locations:
1. Global: ``$TOOLGATE_HOME/permissions.yaml`` (default ``~/.toolgate``)
2. Project: ``.toolgate/permissions.yaml`` in the current directory or
   any parent up to the git root
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from toolgate.config.models import PermissionConfig
from toolgate.config.settings import (
    CONFIG_DIRNAME,
    RULES_FILENAME,
    ToolgateSettings,
    load_settings,
)
from toolgate.exceptions import RuleFileError
from toolgate.permissions.base import PermissionRule

logger = logging.getLogger(__name__)

SOURCE_GLOBAL = "global"
SOURCE_PROJECT = "project"


def find_project_rules_file(start: Path | None = None) -> Path | None:
    """Find the project rule file by walking up the directory tree.

    Searches for ``.toolgate/permissions.yaml`` starting from ``start``
    (default: current directory) and stops at the git root or the
    filesystem root.

    Returns:
        Path to the project rule file, or None if not found.
    """
    current = (start or Path.cwd()).resolve()

    while True:
        rules_path = current / CONFIG_DIRNAME / RULES_FILENAME
        if rules_path.exists():
            return rules_path

        # Don't search beyond git root
        if (current / ".git").exists():
            break

        parent = current.parent
        if parent == current:  # Reached filesystem root
            break
        current = parent

    return None


def find_rule_files(
    settings: ToolgateSettings | None = None,
) -> tuple[Path | None, Path | None]:
    """Find global and project rule files.

    Returns:
        Tuple of (global_rules_path, project_rules_path).
        Either or both may be None if not found.
    """
    settings = settings or load_settings()
    global_path = settings.global_rules_path
    return (global_path if global_path.exists() else None), find_project_rules_file()


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load and parse a YAML rule file.

    Args:
        path: Path to YAML file.

    Returns:
        Parsed mapping, or empty dict if the file doesn't exist or is empty.

    Raises:
        yaml.YAMLError: If YAML syntax is invalid.
        OSError: If file cannot be read.
        RuleFileError: If the document is not a mapping.
    """
    if not path or not path.exists():
        return {}

    try:
        with path.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise OSError(f"Cannot read rule file {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise RuleFileError(
            f"Rule file must contain a YAML mapping, got {type(content).__name__}",
            path=path,
        )
    return content


def load_permission_config(path: Path) -> PermissionConfig:
    """Load and validate one rule file.

    Raises:
        RuleFileError: If the file's structure or rules are invalid.
    """
    data = load_yaml_config(path)
    try:
        return PermissionConfig.model_validate(data)
    except ValidationError as e:
        raise RuleFileError(f"Invalid rule file {path}: {e}", path=path) from e


def load_rule_file(path: Path, source: str) -> list[PermissionRule]:
    """Load one rule file and tag its rules with ``source``.

    Missing files yield no rules.
    """
    if not path.exists():
        logger.debug(f"No rule file at {path}")
        return []

    rules = load_permission_config(path).to_rules(source)
    logger.info(f"Loaded {len(rules)} {source} rule(s) from {path}")
    return rules


def load_permission_rules(
    global_path: Path | None = None,
    project_path: Path | None = None,
    settings: ToolgateSettings | None = None,
) -> list[PermissionRule]:
    """Load and merge permission rules from all sources.

    Project rules come first, then global rules. Order does not change
    decisions (deny always wins over allow), but it keeps listings
    readable.

    Args:
        global_path: Optional path to the global rule file.
            If None, uses ``$TOOLGATE_HOME/permissions.yaml``.
        project_path: Optional path to the project rule file.
            If None, searches upward from cwd.
        settings: Optional settings instance used for discovery.

    Returns:
        Merged rule list, each rule tagged ``project`` or ``global``.

    Raises:
        yaml.YAMLError: If a rule file has invalid YAML syntax.
        RuleFileError: If a rule file has invalid structure or rules.
    """
    if global_path is None or project_path is None:
        found_global, found_project = find_rule_files(settings)
        if global_path is None:
            global_path = found_global
        if project_path is None:
            project_path = found_project

    rules: list[PermissionRule] = []
    if project_path is not None:
        rules.extend(load_rule_file(project_path, SOURCE_PROJECT))
    if global_path is not None:
        rules.extend(load_rule_file(global_path, SOURCE_GLOBAL))
    return rules
