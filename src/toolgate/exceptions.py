"""Custom exceptions for toolgate.

The permission engine itself never raises; these cover the surfaces
around it that read files from disk.
"""

from __future__ import annotations

from pathlib import Path


class ToolgateError(Exception):
    """Base exception for toolgate operations."""


class RuleFileError(ToolgateError):
    """Exception raised when a permission rule file cannot be used.

    Raised for files that are not a YAML mapping, contain invalid rules,
    or repeat a rule id. The offending file is kept in ``path``.

    Attributes:
        path: Rule file that failed to load.

    Example:
        >>> try:
        ...     load_rule_file(Path(".toolgate/permissions.yaml"), source="project")
        ... except RuleFileError as e:
        ...     print(f"Bad rules in {e.path}")
    """

    def __init__(self, message: str, path: Path | None = None):
        """Initialize RuleFileError with message and file path.

        Args:
            message: Error description.
            path: Rule file that failed to load.
        """
        super().__init__(message)
        self.path = path
