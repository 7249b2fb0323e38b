"""Core data structures for the permission engine.

Provides the risk levels, permission rules, decisions and per-call
evaluation options shared by the classifier and the engine.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "RISK_PRIORITY",
    "WILDCARD_TOOL",
    "DecisionAction",
    "EvaluateOptions",
    "PermissionDecision",
    "PermissionRule",
    "RiskLevel",
    "RuleAction",
    "RuleMatch",
]

WILDCARD_TOOL = "*"


class RiskLevel(str, Enum):
    """Risk assessment level for a tool invocation.

    Levels are totally ordered (SAFE < MODERATE < DANGEROUS) so the
    highest risk of several sub-commands can be taken with ``max()``.

    Attributes:
        SAFE: Read-only inspection (read file, ls, git status)
        MODERATE: Local, reversible mutations and anything unknown
        DANGEROUS: Shared or external state changes (rm, git push, sudo)
    """

    SAFE = "safe"
    MODERATE = "moderate"
    DANGEROUS = "dangerous"

    def __str__(self) -> str:
        """Return string representation of risk level."""
        return self.value

    @property
    def priority(self) -> int:
        """Numeric rank of this level, lower is safer."""
        return RISK_PRIORITY[self]

    # str already defines ordering, so every operator is overridden here.
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.priority < other.priority

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.priority <= other.priority

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.priority > other.priority

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.priority >= other.priority


# DO NOT compare RiskLevel.value strings directly - they are not ordered!
RISK_PRIORITY: dict[RiskLevel, int] = {
    RiskLevel.SAFE: 0,
    RiskLevel.MODERATE: 1,
    RiskLevel.DANGEROUS: 2,
}


class RuleAction(str, Enum):
    """Action a permission rule applies when it matches."""

    ALLOW = "allow"
    DENY = "deny"

    def __str__(self) -> str:
        return self.value


class DecisionAction(str, Enum):
    """Outcome of a permission evaluation."""

    ALLOW = "allow"
    DENY = "deny"
    ASK = "ask"

    def __str__(self) -> str:
        return self.value


class RuleMatch(BaseModel):
    """Optional match criteria narrowing a rule beyond its tool name.

    Both criteria must hold when both are set.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
    )

    command_prefix: str | None = Field(
        default=None,
        alias="commandPrefix",
        description="Command must start with this prefix (case-sensitive)",
    )
    path_glob: str | None = Field(
        default=None,
        alias="pathGlob",
        description="Path must match this glob (** crosses directories)",
    )


class PermissionRule(BaseModel):
    """An administrator or user defined allow/deny override.

    Rules are immutable and supplied fresh on every evaluation. The
    serialized shape (``model_dump(by_alias=True)``) is the contract for
    external rule stores.

    Example:
        >>> rule = PermissionRule(
        ...     id="no-push",
        ...     action="deny",
        ...     tool="Bash",
        ...     match={"commandPrefix": "git push"},
        ...     source="project",
        ... )
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
    )

    id: str = Field(description="Unique identifier within a rule set")
    action: RuleAction = Field(description="allow or deny")
    tool: str = Field(description=f"Tool name or '{WILDCARD_TOOL}' for any tool")
    match: RuleMatch | None = Field(
        default=None,
        description="Optional command/path criteria",
    )
    source: str = Field(
        description="Provenance tag (project, global, session, ...); opaque to the engine",
    )
    description: str | None = Field(
        default=None,
        description="Human-readable explanation, used as the decision reason",
    )

    @field_validator("id", "tool")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate identifier fields are not blank."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


@dataclass(frozen=True)
class PermissionDecision:
    """Result of evaluating a tool invocation.

    Attributes:
        action: allow, deny or ask
        reason: Human-readable justification (never empty)
        matched_rule: Rule that produced the decision, if any
        risk_level: Classified risk of the invocation, if known
    """

    action: DecisionAction
    reason: str
    matched_rule: PermissionRule | None = None
    risk_level: RiskLevel | None = None

    def __post_init__(self) -> None:
        """Validate decision after initialization."""
        if not self.reason:
            raise ValueError("Decision reason cannot be empty")

    @property
    def allowed(self) -> bool:
        return self.action == DecisionAction.ALLOW

    @property
    def denied(self) -> bool:
        return self.action == DecisionAction.DENY

    @property
    def needs_approval(self) -> bool:
        return self.action == DecisionAction.ASK

    def to_dict(self) -> dict[str, Any]:
        """Convert decision to a JSON-serializable dictionary."""
        return {
            "action": self.action.value,
            "reason": self.reason,
            "matched_rule": (
                self.matched_rule.model_dump(mode="json", by_alias=True)
                if self.matched_rule
                else None
            ),
            "risk_level": self.risk_level.value if self.risk_level else None,
        }


@dataclass
class EvaluateOptions:
    """Caller-owned state consulted by a single evaluation.

    The engine only reads these collections and never keeps a reference
    to them after ``evaluate`` returns. Guarding a shared
    ``session_approved_tools`` set against concurrent mutation is the
    caller's job. Collections left as None grant nothing.

    Attributes:
        allow_all: Legacy global override, approves every non-denied tool
        allow_once_tools: Single-use grants for the next invocation
        session_approved_tools: Grants valid for the whole session
        permission_rules: Materialized, already-merged rule set
    """

    allow_all: bool = False
    allow_once_tools: Sequence[str] | None = ()
    session_approved_tools: Collection[str] | None = field(default_factory=frozenset)
    permission_rules: Sequence[PermissionRule] | None = ()
