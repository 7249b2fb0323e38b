"""toolgate - permission gate for AI agent tool calls.

Decides, for every action an agent wants to take on the host (run a
shell command, edit a file, push to git, call a plugin tool), whether it
may proceed automatically, must be blocked, or needs a human's approval.

Quick Start:
    >>> from toolgate import EvaluateOptions, PermissionEngine
    >>> engine = PermissionEngine()
    >>> engine.evaluate("Bash", {"command": "git push origin main"}).reason
    'Tool "Bash" requires approval (dangerous)'
"""

__version__ = "0.1.0"
__license__ = "Apache-2.0"

from toolgate.permissions import (
    DecisionAction,
    EvaluateOptions,
    PermissionDecision,
    PermissionEngine,
    PermissionRule,
    RiskLevel,
    RuleAction,
    RuleMatch,
    classify_bash_command,
    classify_tool,
    evaluate,
)

__all__ = [
    "DecisionAction",
    "EvaluateOptions",
    "PermissionDecision",
    "PermissionEngine",
    "PermissionRule",
    "RiskLevel",
    "RuleAction",
    "RuleMatch",
    "__license__",
    "__version__",
    "classify_bash_command",
    "classify_tool",
    "evaluate",
]
