"""Permission engine deciding whether a tool invocation may proceed.

Evaluation pipeline (first step that decides wins):

1. Safe auto-allow: SAFE invocations are allowed, bypassing rules
2. Rule matching: deny-first over the caller's rule set
3. One-time approval (``allow_once_tools``)
4. Session approval (``session_approved_tools``)
5. Legacy allow-all (``allow_all``)
6. Ask the user

The engine holds no mutable state, so one instance can be shared across
threads. Note that step 1 means a deny rule cannot block a tool the
classifier considers safe; to block such a tool, change its
classification instead.

Example:
    >>> engine = PermissionEngine()
    >>> engine.evaluate("Write", {"path": "a.ts"}).action
    <DecisionAction.ASK: 'ask'>
    >>> options = EvaluateOptions(session_approved_tools={"Write"})
    >>> engine.evaluate("Write", {"path": "a.ts"}, options).reason
    'Allowed for this session'
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from toolgate.permissions.base import (
    WILDCARD_TOOL,
    DecisionAction,
    EvaluateOptions,
    PermissionDecision,
    PermissionRule,
    RiskLevel,
    RuleAction,
)
from toolgate.permissions.classifier import classify_tool
from toolgate.permissions.glob import match_glob

__all__ = ["PermissionEngine", "evaluate", "match_rules", "rule_matches"]

logger = logging.getLogger(__name__)

_COMMAND_KEYS = ("command", "cmd")
_PATH_KEYS = ("path", "file_path")


def _first_string(tool_input: Mapping[str, Any], keys: Iterable[str]) -> str:
    """Return the first non-empty string value among ``keys``, or ""."""
    for key in keys:
        value = tool_input.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def rule_matches(
    rule: PermissionRule, tool_name: str, tool_input: Mapping[str, Any]
) -> bool:
    """Check whether a single rule applies to a tool invocation.

    The tool must equal ``rule.tool`` (or the rule uses ``*``), and every
    match criterion that is set must hold.
    """
    if rule.tool != WILDCARD_TOOL and rule.tool != tool_name:
        return False

    criteria = rule.match
    if criteria is None:
        return True

    if criteria.command_prefix:
        command = _first_string(tool_input, _COMMAND_KEYS)
        if not command.startswith(criteria.command_prefix):
            return False

    if criteria.path_glob:
        path = _first_string(tool_input, _PATH_KEYS)
        if not path or not match_glob(path, criteria.path_glob):
            return False

    return True


def match_rules(
    tool_name: str,
    tool_input: Mapping[str, Any],
    rules: Iterable[PermissionRule],
) -> PermissionDecision | None:
    """Resolve a rule set against a tool invocation, deny first.

    Args:
        tool_name: Name of the tool being invoked
        tool_input: Tool arguments
        rules: Merged rule set

    Returns:
        A deny decision if any matching rule denies, otherwise an allow
        decision if any matching rule allows, otherwise None
    """
    matching = [rule for rule in rules if rule_matches(rule, tool_name, tool_input)]
    if not matching:
        return None

    deny_rule = next((r for r in matching if r.action == RuleAction.DENY), None)
    if deny_rule is not None:
        return PermissionDecision(
            action=DecisionAction.DENY,
            reason=deny_rule.description or f"Denied by rule: {deny_rule.id}",
            matched_rule=deny_rule,
        )

    allow_rule = next((r for r in matching if r.action == RuleAction.ALLOW), None)
    if allow_rule is not None:
        return PermissionDecision(
            action=DecisionAction.ALLOW,
            reason=allow_rule.description or f"Allowed by rule: {allow_rule.id}",
            matched_rule=allow_rule,
        )

    return None


class PermissionEngine:
    """Stateless evaluator of tool invocations.

    All approval state lives in the :class:`EvaluateOptions` passed to
    each call; the engine never keeps it.
    """

    def evaluate(
        self,
        tool_name: str,
        tool_input: Mapping[str, Any] | None = None,
        options: EvaluateOptions | None = None,
    ) -> PermissionDecision:
        """Decide whether a tool invocation may proceed.

        Args:
            tool_name: Name of the tool being invoked
            tool_input: Tool arguments (command, path, ...)
            options: Caller-owned rules and approvals for this call

        Returns:
            PermissionDecision carrying the classified risk level
        """
        tool_input = tool_input or {}
        options = options or EvaluateOptions()

        risk_level = classify_tool(tool_name, tool_input)
        decision = self._decide(tool_name, tool_input, options, risk_level)

        logger.debug(
            f"Tool '{tool_name}' -> {decision.action.value} "
            f"(risk={risk_level.value}): {decision.reason}"
        )
        return decision

    def _decide(
        self,
        tool_name: str,
        tool_input: Mapping[str, Any],
        options: EvaluateOptions,
        risk_level: RiskLevel,
    ) -> PermissionDecision:
        if risk_level == RiskLevel.SAFE:
            return PermissionDecision(
                action=DecisionAction.ALLOW,
                reason="Tool classified as safe",
                risk_level=risk_level,
            )

        if options.permission_rules:
            rule_decision = match_rules(tool_name, tool_input, options.permission_rules)
            if rule_decision is not None:
                return dataclasses.replace(rule_decision, risk_level=risk_level)

        if options.allow_once_tools and tool_name in options.allow_once_tools:
            return PermissionDecision(
                action=DecisionAction.ALLOW,
                reason="Allowed once by user",
                risk_level=risk_level,
            )

        if (
            options.session_approved_tools
            and tool_name in options.session_approved_tools
        ):
            return PermissionDecision(
                action=DecisionAction.ALLOW,
                reason="Allowed for this session",
                risk_level=risk_level,
            )

        if options.allow_all:
            return PermissionDecision(
                action=DecisionAction.ALLOW,
                reason="All tools allowed (allowAll)",
                risk_level=risk_level,
            )

        return PermissionDecision(
            action=DecisionAction.ASK,
            reason=f'Tool "{tool_name}" requires approval ({risk_level.value})',
            risk_level=risk_level,
        )


_default_engine = PermissionEngine()


def evaluate(
    tool_name: str,
    tool_input: Mapping[str, Any] | None = None,
    options: EvaluateOptions | None = None,
) -> PermissionDecision:
    """Evaluate with a shared default :class:`PermissionEngine`."""
    return _default_engine.evaluate(tool_name, tool_input, options)
