"""Pytest configuration and shared fixtures for toolgate tests."""

from collections.abc import Callable
from typing import Any

import pytest

from toolgate.permissions import PermissionEngine, PermissionRule


@pytest.fixture
def engine() -> PermissionEngine:
    """Provide a fresh PermissionEngine."""
    return PermissionEngine()


@pytest.fixture
def make_rule() -> Callable[..., PermissionRule]:
    """Provide a factory for project rules with sensible defaults.

    Returns:
        Callable building a PermissionRule from keyword overrides.
    """

    def _make_rule(**overrides: Any) -> PermissionRule:
        fields: dict[str, Any] = {
            "id": "r1",
            "action": "allow",
            "tool": "Write",
            "source": "project",
        }
        fields.update(overrides)
        return PermissionRule(**fields)

    return _make_rule


@pytest.fixture(autouse=True)
def isolated_home(tmp_path_factory, monkeypatch):
    """Point TOOLGATE_HOME at an empty directory for every test."""
    home = tmp_path_factory.mktemp("toolgate-home")
    monkeypatch.setenv("TOOLGATE_HOME", str(home))
    monkeypatch.delenv("TOOLGATE_LOG_LEVEL", raising=False)
    return home
