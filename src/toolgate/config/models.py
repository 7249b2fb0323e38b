"""Pydantic models for permission rule files.

A rule file is a YAML mapping::

    version: 1
    rules:
      - id: no-push
        action: deny
        tool: Bash
        match:
          commandPrefix: git push
        description: Pushing is done by humans
      - id: edit-src
        action: allow
        tool: Edit
        match:
          pathGlob: src/**

Rules in a file carry no ``source``; the loader stamps it from the
file's location.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from toolgate.permissions.base import PermissionRule, RuleAction, RuleMatch

CURRENT_VERSION = 1


class RuleDefinition(BaseModel):
    """A permission rule as written in a rule file."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
    )

    id: str = Field(description="Unique identifier within the file")
    action: RuleAction = Field(description="allow or deny")
    tool: str = Field(description="Tool name or '*'")
    match: RuleMatch | None = Field(default=None, description="Match criteria")
    description: str | None = Field(default=None, description="Decision reason")

    @field_validator("id", "tool")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate identifier fields are not blank."""
        if not v or not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()

    def to_rule(self, source: str) -> PermissionRule:
        """Materialize an immutable rule tagged with ``source``."""
        return PermissionRule(
            id=self.id,
            action=self.action,
            tool=self.tool,
            match=self.match,
            source=source,
            description=self.description,
        )


class PermissionConfig(BaseModel):
    """Contents of one ``permissions.yaml`` file."""

    model_config = ConfigDict(extra="forbid")

    version: int = Field(
        default=CURRENT_VERSION,
        ge=1,
        le=CURRENT_VERSION,
        description="Rule file format version",
    )
    rules: list[RuleDefinition] = Field(
        default_factory=list,
        description="Rules in file order",
    )
    # Reserved for pre/post tool-use hooks; accepted but not evaluated.
    hooks: dict[str, Any] | None = Field(default=None)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> PermissionConfig:
        """Reject files that define the same rule id twice."""
        seen: set[str] = set()
        for rule in self.rules:
            if rule.id in seen:
                raise ValueError(f"Duplicate rule id: {rule.id}")
            seen.add(rule.id)
        return self

    def to_rules(self, source: str) -> list[PermissionRule]:
        """Materialize every rule tagged with ``source``."""
        return [rule.to_rule(source) for rule in self.rules]
