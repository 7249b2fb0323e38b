"""Configuration module for toolgate.

This module provides Pydantic models and utilities for reading permission
rule files and environment settings.
"""

from toolgate.config.loader import (
    SOURCE_GLOBAL,
    SOURCE_PROJECT,
    find_project_rules_file,
    find_rule_files,
    load_permission_config,
    load_permission_rules,
    load_rule_file,
    load_yaml_config,
)
from toolgate.config.models import PermissionConfig, RuleDefinition
from toolgate.config.settings import ToolgateSettings, load_settings

__all__ = [
    "SOURCE_GLOBAL",
    "SOURCE_PROJECT",
    "PermissionConfig",
    "RuleDefinition",
    "ToolgateSettings",
    "find_project_rules_file",
    "find_rule_files",
    "load_permission_config",
    "load_permission_rules",
    "load_rule_file",
    "load_settings",
    "load_yaml_config",
]
