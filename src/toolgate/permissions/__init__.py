"""Permission engine for AI agent tool calls.

This module classifies tool invocations by risk and decides whether each
one is allowed, denied, or needs human approval. It has no I/O and no
UI dependencies: rule sets and approval state are passed in by the
caller on every call.

Example:
    >>> from toolgate.permissions import EvaluateOptions, PermissionEngine
    >>> engine = PermissionEngine()
    >>> decision = engine.evaluate("Bash", {"command": "ls -la"})
    >>> decision.allowed
    True
"""

from toolgate.permissions.base import (
    RISK_PRIORITY,
    DecisionAction,
    EvaluateOptions,
    PermissionDecision,
    PermissionRule,
    RiskLevel,
    RuleAction,
    RuleMatch,
)
from toolgate.permissions.classifier import (
    CommandRisk,
    classify_bash_command,
    classify_tool,
    explain_bash_command,
    split_compound_command,
)
from toolgate.permissions.engine import (
    PermissionEngine,
    evaluate,
    match_rules,
    rule_matches,
)
from toolgate.permissions.glob import glob_to_regex, match_glob

__all__ = [
    "RISK_PRIORITY",
    "CommandRisk",
    "DecisionAction",
    "EvaluateOptions",
    "PermissionDecision",
    "PermissionEngine",
    "PermissionRule",
    "RiskLevel",
    "RuleAction",
    "RuleMatch",
    "classify_bash_command",
    "classify_tool",
    "evaluate",
    "explain_bash_command",
    "glob_to_regex",
    "match_glob",
    "match_rules",
    "rule_matches",
    "split_compound_command",
]
