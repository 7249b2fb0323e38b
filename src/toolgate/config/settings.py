"""Environment settings for toolgate.

Environment Variables:
    TOOLGATE_HOME: Directory holding the global rule file (default: ~/.toolgate)
    TOOLGATE_LOG_LEVEL: Enable CLI logging at this level (e.g. DEBUG)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

RULES_FILENAME = "permissions.yaml"
CONFIG_DIRNAME = ".toolgate"


class ToolgateSettings(BaseSettings):
    """Process-level settings read from ``TOOLGATE_*`` variables.

    Example:
        >>> settings = ToolgateSettings()
        >>> settings.global_rules_path.name
        'permissions.yaml'
    """

    model_config = SettingsConfigDict(
        env_prefix="TOOLGATE_",
        extra="ignore",
    )

    home: Path = Field(
        default_factory=lambda: Path.home() / CONFIG_DIRNAME,
        description="Directory holding the global permissions.yaml",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = Field(
        default=None,
        description="Log level for the CLI (unset = logging disabled)",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str | None:
        """Accept lowercase level names."""
        if isinstance(v, str):
            v = v.strip().upper()
            return v or None
        return v

    @property
    def global_rules_path(self) -> Path:
        """Path of the global (user-level) rule file."""
        return self.home.expanduser() / RULES_FILENAME


def load_settings() -> ToolgateSettings:
    """Load settings fresh from the environment."""
    return ToolgateSettings()
