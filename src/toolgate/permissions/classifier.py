"""Risk classifier for tool invocations and bash commands.

Assigns every tool invocation one of three risk levels. Built-in tools
are looked up in a static table; shell commands are split into
sub-commands and each one is matched against ordered pattern tables:

1. DANGEROUS patterns (deletion, privilege escalation, package installs,
   git history mutation, writes to absolute paths)
2. SAFE exact commands
3. SAFE command prefixes (viewers, search, read-only git, test runners)
4. ``sed -n`` special case
5. MODERATE for everything else

A compound command is as risky as its riskiest sub-command, so a
trailing ``ls`` can never mask a leading ``rm -rf /``.

Example:
    >>> classify_bash_command("git status && ls -la")
    <RiskLevel.SAFE: 'safe'>
    >>> classify_bash_command("rm -rf build && ls")
    <RiskLevel.DANGEROUS: 'dangerous'>
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from toolgate.permissions.base import RiskLevel

__all__ = [
    "BASH_TOOL",
    "DANGEROUS_BASH_PATTERNS",
    "PIPELINE_PATTERNS",
    "SAFE_BASH_EXACT",
    "SAFE_BASH_PREFIXES",
    "STATIC_TOOL_LEVELS",
    "CommandRisk",
    "classify_bash_command",
    "classify_single_command",
    "classify_tool",
    "explain_bash_command",
    "split_compound_command",
]

BASH_TOOL = "Bash"

# Bash is absent on purpose: it is classified per command.
STATIC_TOOL_LEVELS: dict[str, RiskLevel] = {
    # Read-only inspection
    "Read": RiskLevel.SAFE,
    "LS": RiskLevel.SAFE,
    "Glob": RiskLevel.SAFE,
    "Grep": RiskLevel.SAFE,
    "GitStatus": RiskLevel.SAFE,
    "GitDiff": RiskLevel.SAFE,
    "GitLog": RiskLevel.SAFE,
    "WebFetch": RiskLevel.SAFE,
    "WebSearch": RiskLevel.SAFE,
    "TodoWrite": RiskLevel.SAFE,
    # Local file mutation, reversible via version control
    "Write": RiskLevel.MODERATE,
    "Edit": RiskLevel.MODERATE,
    # Shared repository state
    "GitCommit": RiskLevel.DANGEROUS,
    "GitPush": RiskLevel.DANGEROUS,
    "GitCheckout": RiskLevel.DANGEROUS,
}

# Note: test/lint runners execute project scripts; users who do not
# trust them can still override with deny rules.
SAFE_BASH_PREFIXES: tuple[str, ...] = (
    # File viewing
    "cat ",
    "head ",
    "tail ",
    "less ",
    "wc ",
    # Directory listing
    "ls ",
    "ls\t",
    "pwd",
    "find ",
    "tree ",
    # Search
    "grep ",
    "rg ",
    "ag ",
    "ack ",
    # Git read-only
    "git status",
    "git log",
    "git diff",
    "git branch",
    "git show",
    "git blame",
    "git stash list",
    # Package manager queries
    "npm list",
    "npm ls",
    "npm outdated",
    "npm view",
    "yarn list",
    "yarn info",
    "yarn why",
    "pnpm list",
    "pnpm ls",
    "pnpm why",
    "bun pm ls",
    # Build/test
    "npm test",
    "npm run test",
    "npm run lint",
    "npm run check",
    "yarn test",
    "yarn lint",
    "pnpm test",
    "bun test",
    "npx tsc --noEmit",
    "npx eslint",
    # Environment inspection
    "which ",
    "where ",
    "whoami",
    "uname",
    "env",
    "node --version",
    "npm --version",
    "python --version",
    # Read-only text filters
    "echo ",
    "printf ",
    "sort ",
    "uniq ",
    "cut ",
    "tr ",
    "awk ",
    "jq ",
    # sed -n is handled separately, it needs an -i check
)

SAFE_BASH_EXACT: tuple[str, ...] = (
    "ls",
    "pwd",
    "whoami",
    "date",
    "uname",
    "git status",
    "git branch",
    "git log",
)

# (pattern, reason) pairs, checked in order against each sub-command.
DANGEROUS_BASH_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern), reason)
    for pattern, reason in (
        # Deletion
        (r"\brm\s", "deletes files"),
        (r"\brmdir\s", "deletes directories"),
        # Permissions
        (r"\bchmod\s", "changes file permissions"),
        (r"\bchown\s", "changes file ownership"),
        # Privilege escalation
        (r"\bsudo\s", "escalates privileges"),
        (r"\bsu\s", "switches user"),
        # Network writes
        (
            r"\bcurl\s.*(-X|--request)\s*(POST|PUT|DELETE|PATCH)",
            "sends a mutating HTTP request",
        ),
        (r"\bwget\s", "downloads files"),
        # Process termination
        (r"\bkill\s", "terminates processes"),
        (r"\bkillall\s", "terminates processes"),
        # Package installation
        (r"\bnpm install", "installs packages"),
        (r"\bnpm i\s", "installs packages"),
        (r"\byarn add", "installs packages"),
        (r"\bpnpm add", "installs packages"),
        (r"\bbun add", "installs packages"),
        (r"\bpip install", "installs packages"),
        (r"\bbrew install", "installs packages"),
        # Git history mutation
        (r"\bgit push", "publishes commits"),
        (r"\bgit commit", "records commits"),
        (r"\bgit checkout", "switches or discards working tree state"),
        (r"\bgit reset", "rewrites history"),
        (r"\bgit rebase", "rewrites history"),
        (r"\bgit merge", "merges history"),
        (r"\bgit stash (drop|pop|clear)", "discards stashed changes"),
        # Redirects
        (r">\s*/", "writes to an absolute path"),
    )
)

# Checked against the whole command before splitting, because splitting
# on "|" consumes the pipe these patterns look for.
PIPELINE_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\|\s*tee\s"), "pipes output into tee"),
)

_SED_PRINT_PREFIX = "sed -n"
_SED_IN_PLACE = re.compile(r"\s-i\b")
_COMPOUND_SEPARATOR = re.compile(r"\s*(?:&&|\|\||[;|])\s*")


@dataclass(frozen=True)
class CommandRisk:
    """Risk assessment result for one (sub-)command.

    Attributes:
        command: The command text that was assessed
        level: Risk classification
        reason: Human-readable explanation of the assessment
        matched_pattern: Regex or prefix that decided the level (if any)
    """

    command: str
    level: RiskLevel
    reason: str
    matched_pattern: str | None = None


def split_compound_command(command: str) -> list[str]:
    """Split a compound command on ``&&``, ``||``, ``;`` and ``|``.

    Separators inside single or double quotes, or escaped with a
    backslash, do not split. If the quotes are unbalanced the command
    cannot be tokenized reliably and a plain regex split is used
    instead.

    Args:
        command: Full command string

    Returns:
        Stripped, non-empty sub-commands in order

    Example:
        >>> split_compound_command("ls && echo 'a; b' | sort")
        ['ls', "echo 'a; b'", 'sort']
    """
    parts: list[str] = []
    current: list[str] = []
    in_single = False
    in_double = False
    i = 0
    while i < len(command):
        c = command[i]
        if c == "\\" and not in_single and i + 1 < len(command):
            current.append(command[i : i + 2])
            i += 2
            continue
        if c == "'" and not in_double:
            in_single = not in_single
        elif c == '"' and not in_single:
            in_double = not in_double
        elif not in_single and not in_double:
            width = _separator_width(command, i)
            if width:
                parts.append("".join(current).strip())
                current = []
                i += width
                continue
        current.append(c)
        i += 1

    if in_single or in_double:
        parts = _COMPOUND_SEPARATOR.split(command)
    else:
        parts.append("".join(current).strip())

    return [part.strip() for part in parts if part.strip()]


def _separator_width(text: str, i: int) -> int:
    if text.startswith(("&&", "||"), i):
        return 2
    if text[i] in ";|":
        return 1
    return 0


def _assess_single_command(command: str) -> CommandRisk:
    for pattern, reason in DANGEROUS_BASH_PATTERNS:
        if pattern.search(command):
            return CommandRisk(
                command=command,
                level=RiskLevel.DANGEROUS,
                reason=f"Command {reason}",
                matched_pattern=pattern.pattern,
            )

    if command in SAFE_BASH_EXACT:
        return CommandRisk(
            command=command,
            level=RiskLevel.SAFE,
            reason="Known read-only command",
            matched_pattern=command,
        )

    for prefix in SAFE_BASH_PREFIXES:
        if command.startswith(prefix):
            return CommandRisk(
                command=command,
                level=RiskLevel.SAFE,
                reason="Read-only or informational command",
                matched_pattern=prefix,
            )

    if command.startswith(_SED_PRINT_PREFIX):
        if _SED_IN_PLACE.search(command):
            return CommandRisk(
                command=command,
                level=RiskLevel.MODERATE,
                reason="sed edits files in place (-i)",
                matched_pattern=_SED_IN_PLACE.pattern,
            )
        return CommandRisk(
            command=command,
            level=RiskLevel.SAFE,
            reason="sed -n only prints",
            matched_pattern=_SED_PRINT_PREFIX,
        )

    return CommandRisk(
        command=command,
        level=RiskLevel.MODERATE,
        reason="Unknown command - defaulting to moderate",
    )


def _assess_pipeline(command: str) -> CommandRisk | None:
    for pattern, reason in PIPELINE_PATTERNS:
        if pattern.search(command):
            return CommandRisk(
                command=command,
                level=RiskLevel.DANGEROUS,
                reason=f"Command {reason}",
                matched_pattern=pattern.pattern,
            )
    return None


def classify_single_command(command: str) -> RiskLevel:
    """Classify one non-compound command (already trimmed)."""
    return _assess_single_command(command).level


def classify_bash_command(command: str) -> RiskLevel:
    """Classify a bash command, compound or not.

    Empty commands are MODERATE: they are ambiguous and must not be
    auto-trusted. Compound commands take the highest level of their
    sub-commands, stopping at the first DANGEROUS one.

    Args:
        command: The bash command string to classify

    Returns:
        Aggregated risk level

    Example:
        >>> classify_bash_command("npm run lint")
        <RiskLevel.SAFE: 'safe'>
        >>> classify_bash_command("curl http://example.com")
        <RiskLevel.MODERATE: 'moderate'>
    """
    trimmed = command.strip()
    if not trimmed:
        return RiskLevel.MODERATE

    if _assess_pipeline(trimmed) is not None:
        return RiskLevel.DANGEROUS

    parts = split_compound_command(trimmed)
    if not parts:
        return RiskLevel.MODERATE

    max_risk = RiskLevel.SAFE
    for part in parts:
        max_risk = max(max_risk, classify_single_command(part))
        if max_risk is RiskLevel.DANGEROUS:
            break
    return max_risk


def explain_bash_command(command: str) -> list[CommandRisk]:
    """Assess every sub-command of a bash command.

    Unlike :func:`classify_bash_command` this does not stop at the first
    dangerous sub-command, so callers can show the full picture in an
    approval prompt. The highest level in the result always equals
    ``classify_bash_command(command)``.

    Args:
        command: The bash command string to explain

    Returns:
        One CommandRisk per assessed fragment (never empty)
    """
    trimmed = command.strip()
    if not trimmed:
        return [
            CommandRisk(
                command="",
                level=RiskLevel.MODERATE,
                reason="Empty command is ambiguous",
            )
        ]

    risks: list[CommandRisk] = []
    pipeline_risk = _assess_pipeline(trimmed)
    if pipeline_risk is not None:
        risks.append(pipeline_risk)

    parts = split_compound_command(trimmed)
    if not parts and not risks:
        return [
            CommandRisk(
                command=trimmed,
                level=RiskLevel.MODERATE,
                reason="Command contains only separators",
            )
        ]

    risks.extend(_assess_single_command(part) for part in parts)
    return risks


def classify_tool(
    tool_name: str, tool_input: Mapping[str, Any] | None = None
) -> RiskLevel:
    """Classify any tool invocation.

    Args:
        tool_name: Name of the tool
        tool_input: Tool arguments (only Bash reads them, from ``command``)

    Returns:
        Risk level; unknown tools (including plugin/MCP tools) are MODERATE

    Example:
        >>> classify_tool("Read")
        <RiskLevel.SAFE: 'safe'>
        >>> classify_tool("Bash", {"command": "git push origin main"})
        <RiskLevel.DANGEROUS: 'dangerous'>
    """
    if tool_name == BASH_TOOL:
        command = tool_input.get("command") if tool_input else None
        return classify_bash_command(command if isinstance(command, str) else "")

    return STATIC_TOOL_LEVELS.get(tool_name, RiskLevel.MODERATE)
