"""Tests for the toolgate command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from toolgate.__main__ import cli
from toolgate.config.settings import ToolgateSettings

RULES = """\
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
"""


@pytest.fixture
def runner():
    """Create Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> Path:
    """Run inside an empty git project."""
    (tmp_path / ".git").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def rules_file(tmp_path: Path) -> Path:
    """Write a standalone rule file."""
    path = tmp_path / "extra.yaml"
    path.write_text(RULES)
    return path


class TestClassifyCommand:
    """Tests for `toolgate classify`."""

    @pytest.mark.parametrize(
        ("command", "expected"),
        [
            ("ls -la", "safe"),
            ("make build", "moderate"),
            ("rm -rf build && ls", "dangerous"),
        ],
    )
    def test_prints_level(self, runner, command, expected):
        """Test the risk level is printed."""
        result = runner.invoke(cli, ["classify", command])
        assert result.exit_code == 0
        assert result.output.strip() == expected

    def test_explain(self, runner):
        """Test --explain lists every sub-command."""
        result = runner.invoke(
            cli, ["classify", "git push origin main && ls", "--explain"]
        )

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "dangerous"
        assert "  [dangerous] git push origin main" in lines
        assert "  [safe] ls" in lines
        assert any(line.strip().startswith("matched:") for line in lines)

    def test_explain_empty(self, runner):
        """Test an empty command is shown as moderate."""
        result = runner.invoke(cli, ["classify", "", "--explain"])
        assert result.exit_code == 0
        assert "[moderate] <empty>" in result.output


class TestToolCommand:
    """Tests for `toolgate tool`."""

    def test_static_tool(self, runner):
        """Test a built-in tool uses the static table."""
        result = runner.invoke(cli, ["tool", "GitPush"])
        assert result.output.strip() == "dangerous"

    def test_bash_input(self, runner):
        """Test Bash reads the command from --input."""
        result = runner.invoke(
            cli, ["tool", "Bash", "--input", '{"command": "git status"}']
        )
        assert result.exit_code == 0
        assert result.output.strip() == "safe"

    def test_unknown_tool(self, runner):
        """Test unknown tools are moderate."""
        result = runner.invoke(cli, ["tool", "MCPCustomTool"])
        assert result.output.strip() == "moderate"

    @pytest.mark.parametrize("bad_input", ["{not json", "[1, 2]"])
    def test_bad_input(self, runner, bad_input):
        """Test --input must be a JSON object."""
        result = runner.invoke(cli, ["tool", "Bash", "--input", bad_input])
        assert result.exit_code == 2
        assert "Invalid value" in result.output


class TestCheckCommand:
    """Tests for `toolgate check`."""

    def test_safe_tool(self, runner, project):
        """Test a safe tool is allowed."""
        result = runner.invoke(cli, ["check", "Read", "--input", '{"path": "a"}'])
        assert result.exit_code == 0
        assert result.output.strip() == "allow: Tool classified as safe"

    def test_default_ask(self, runner, project):
        """Test an unapproved moderate tool asks."""
        result = runner.invoke(cli, ["check", "Write"])
        assert result.output.strip() == 'ask: Tool "Write" requires approval (moderate)'

    def test_extra_rules(self, runner, project, rules_file):
        """Test --rules files are applied and reported."""
        result = runner.invoke(
            cli,
            [
                "check",
                "Bash",
                "--input",
                '{"command": "git push origin main"}',
                "--rules",
                str(rules_file),
            ],
        )
        assert result.exit_code == 0
        assert "deny: Pushing is done by humans" in result.output
        assert "rule: no-push (cli)" in result.output

    def test_project_rules_are_loaded(self, runner, project):
        """Test the project rule file is found from the working directory."""
        (project / ".toolgate").mkdir()
        (project / ".toolgate" / "permissions.yaml").write_text(RULES)

        result = runner.invoke(
            cli, ["check", "Edit", "--input", '{"path": "src/app.ts"}']
        )
        assert "allow: Allowed by rule: edit-src" in result.output
        assert "(project)" in result.output

    def test_no_config_skips_rule_files(self, runner, project):
        """Test --no-config ignores project rules."""
        (project / ".toolgate").mkdir()
        (project / ".toolgate" / "permissions.yaml").write_text(RULES)

        result = runner.invoke(
            cli,
            ["check", "Edit", "--input", '{"path": "src/app.ts"}', "--no-config"],
        )
        assert result.output.startswith("ask:")

    @pytest.mark.parametrize(
        ("flags", "reason"),
        [
            (["--allow-once", "Write"], "Allowed once by user"),
            (["--session", "Write"], "Allowed for this session"),
            (["--allow-all"], "All tools allowed (allowAll)"),
            (
                ["--allow-once", "Write", "--allow-all"],
                "Allowed once by user",
            ),
        ],
    )
    def test_overrides(self, runner, project, flags, reason):
        """Test approval flags map onto evaluation options."""
        result = runner.invoke(cli, ["check", "Write", *flags])
        assert result.output.strip() == f"allow: {reason}"

    def test_json_output(self, runner, project, rules_file):
        """Test --json prints the full decision."""
        result = runner.invoke(
            cli,
            [
                "check",
                "Bash",
                "--input",
                '{"command": "git push --force"}',
                "--rules",
                str(rules_file),
                "--json",
            ],
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["action"] == "deny"
        assert data["risk_level"] == "dangerous"
        assert data["matched_rule"]["id"] == "no-push"
        assert data["matched_rule"]["match"]["commandPrefix"] == "git push"
        assert data["matched_rule"]["source"] == "cli"

    def test_invalid_rule_file(self, runner, project, tmp_path):
        """Test a broken rule file exits with an error."""
        bad = tmp_path / "bad.yaml"
        bad.write_text("rules:\n  - {id: r1, action: maybe, tool: Write}\n")

        result = runner.invoke(cli, ["check", "Write", "--rules", str(bad)])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_invalid_yaml(self, runner, project, tmp_path):
        """Test a rule file with broken YAML exits with an error."""
        bad = tmp_path / "bad.yaml"
        bad.write_text("rules: [unclosed")

        result = runner.invoke(cli, ["check", "Write", "--rules", str(bad)])

        assert result.exit_code == 1
        assert "Invalid YAML" in result.output


class TestRulesListCommand:
    """Tests for `toolgate rules list`."""

    def test_no_rules(self, runner, project):
        """Test the empty listing."""
        result = runner.invoke(cli, ["rules", "list"])
        assert result.exit_code == 0
        assert "No permission rules found." in result.output

    def test_lists_rules(self, runner, project, rules_file):
        """Test rules are listed with their criteria."""
        result = runner.invoke(cli, ["rules", "list", "--rules", str(rules_file)])

        assert result.exit_code == 0
        assert "Permission rules (2):" in result.output
        assert "no-push" in result.output
        assert "Command: git push*" in result.output
        assert "Path:    src/**" in result.output
        assert "About:   Pushing is done by humans" in result.output
        assert "Source:  cli" in result.output

    def test_global_rules(self, runner, project, isolated_home):
        """Test the global rule file is listed."""
        (isolated_home / "permissions.yaml").write_text(RULES)
        result = runner.invoke(cli, ["rules", "list"])
        assert "Source:  global" in result.output

    def test_group_settings_are_used(self, runner, project, tmp_path, monkeypatch):
        """Test subcommands load rules with the settings the group resolved."""
        home = tmp_path / "resolved-home"
        home.mkdir()
        (home / "permissions.yaml").write_text(RULES)
        monkeypatch.setattr(
            "toolgate.__main__.load_settings", lambda: ToolgateSettings(home=home)
        )

        listed = runner.invoke(cli, ["rules", "list"])
        checked = runner.invoke(
            cli, ["check", "Bash", "--input", '{"command": "git push"}']
        )

        assert "Permission rules (2):" in listed.output
        assert "Source:  global" in listed.output
        assert checked.output.startswith("deny: Pushing is done by humans")
