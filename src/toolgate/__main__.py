"""CLI entry point for toolgate."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml

from toolgate.config.loader import load_permission_rules, load_rule_file
from toolgate.config.settings import ToolgateSettings, load_settings
from toolgate.exceptions import ToolgateError
from toolgate.permissions import (
    EvaluateOptions,
    PermissionEngine,
    PermissionRule,
    classify_bash_command,
    classify_tool,
    explain_bash_command,
)

SOURCE_CLI = "cli"


def _setup_logging(level: str, log_file: Path | None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, mode="w"))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )
    logging.getLogger("toolgate").setLevel(level)


def _parse_input(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> dict[str, Any]:
    """Parse a --input option as a JSON object."""
    if not value:
        return {}
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise click.BadParameter("must be a JSON object")
    return data


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _load_rules(
    rule_files: tuple[Path, ...],
    use_config: bool,
    settings: ToolgateSettings | None = None,
) -> list[PermissionRule]:
    rules: list[PermissionRule] = []
    for path in rule_files:
        rules.extend(load_rule_file(path, SOURCE_CLI))
    if use_config:
        rules.extend(load_permission_rules(settings=settings))
    return rules


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write logs to this file",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool, log_file: Path | None) -> None:
    """toolgate - permission gate for AI agent tool calls."""
    settings = load_settings()
    level = "DEBUG" if debug else settings.log_level
    if level:
        _setup_logging(level, log_file)
        logging.getLogger(__name__).debug(f"Logging enabled at {level}")

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("command")
@click.option(
    "--explain",
    is_flag=True,
    help="Show the assessment of every sub-command",
)
def classify(command: str, explain: bool) -> None:
    """Classify a bash COMMAND as safe, moderate or dangerous."""
    click.echo(classify_bash_command(command).value)

    if explain:
        for risk in explain_bash_command(command):
            click.echo(f"  [{risk.level.value}] {risk.command or '<empty>'}")
            click.echo(f"      {risk.reason}")
            if risk.matched_pattern:
                click.echo(f"      matched: {risk.matched_pattern}")


@cli.command()
@click.argument("tool_name")
@click.option(
    "--input",
    "tool_input",
    callback=_parse_input,
    help="Tool arguments as a JSON object",
)
def tool(tool_name: str, tool_input: dict[str, Any]) -> None:
    """Classify a TOOL_NAME invocation."""
    click.echo(classify_tool(tool_name, tool_input).value)


@cli.command()
@click.argument("tool_name")
@click.option(
    "--input",
    "tool_input",
    callback=_parse_input,
    help="Tool arguments as a JSON object",
)
@click.option(
    "--rules",
    "rule_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Extra rule file (repeatable)",
)
@click.option(
    "--no-config",
    is_flag=True,
    help="Skip the global and project rule files",
)
@click.option("--allow-once", multiple=True, help="Tool approved once (repeatable)")
@click.option(
    "--session",
    "session_tools",
    multiple=True,
    help="Tool approved for the session (repeatable)",
)
@click.option("--allow-all", is_flag=True, help="Legacy allow-all override")
@click.option("--json", "as_json", is_flag=True, help="Print the decision as JSON")
@click.pass_context
def check(
    ctx: click.Context,
    tool_name: str,
    tool_input: dict[str, Any],
    rule_files: tuple[Path, ...],
    no_config: bool,
    allow_once: tuple[str, ...],
    session_tools: tuple[str, ...],
    allow_all: bool,
    as_json: bool,
) -> None:
    """Evaluate whether TOOL_NAME may run: allow, deny or ask."""
    try:
        rules = _load_rules(
            rule_files, use_config=not no_config, settings=ctx.obj["settings"]
        )
    except (ToolgateError, yaml.YAMLError, OSError) as e:
        _fail(str(e))

    options = EvaluateOptions(
        allow_all=allow_all,
        allow_once_tools=list(allow_once),
        session_approved_tools=set(session_tools),
        permission_rules=rules,
    )
    decision = PermissionEngine().evaluate(tool_name, tool_input, options)

    if as_json:
        click.echo(json.dumps(decision.to_dict(), indent=2))
        return

    click.echo(f"{decision.action.value}: {decision.reason}")
    if decision.matched_rule is not None:
        rule = decision.matched_rule
        click.echo(f"  rule: {rule.id} ({rule.source})")


@cli.group()
def rules() -> None:
    """Inspect permission rule files."""


@rules.command("list")
@click.option(
    "--rules",
    "rule_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Extra rule file (repeatable)",
)
@click.option(
    "--no-config",
    is_flag=True,
    help="Skip the global and project rule files",
)
@click.pass_context
def list_rules(
    ctx: click.Context, rule_files: tuple[Path, ...], no_config: bool
) -> None:
    """List the merged rule set."""
    try:
        merged = _load_rules(
            rule_files, use_config=not no_config, settings=ctx.obj["settings"]
        )
    except (ToolgateError, yaml.YAMLError, OSError) as e:
        _fail(str(e))

    if not merged:
        click.echo("No permission rules found.")
        return

    click.echo(f"\nPermission rules ({len(merged)}):\n")
    for rule in merged:
        click.echo(f"{rule.id}")
        click.echo(f"  Action:  {rule.action.value}")
        click.echo(f"  Tool:    {rule.tool}")
        if rule.match is not None:
            if rule.match.command_prefix:
                click.echo(f"  Command: {rule.match.command_prefix}*")
            if rule.match.path_glob:
                click.echo(f"  Path:    {rule.match.path_glob}")
        click.echo(f"  Source:  {rule.source}")
        if rule.description:
            click.echo(f"  About:   {rule.description}")
        click.echo()


def main() -> None:
    """Main entry point for toolgate CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
