"""Glob matching for permission rule paths.

Translation rules, applied in this order:
- ``.`` is a literal dot
- ``**`` matches any sequence, including ``/``
- ``*`` matches any sequence except ``/``
- ``?`` matches exactly one character

The result is anchored at both ends. A pattern that fails to compile
never matches, so a malformed rule can neither crash evaluation nor
grant access.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

__all__ = ["glob_to_regex", "match_glob"]

logger = logging.getLogger(__name__)

_GLOBSTAR = "\x00GLOBSTAR\x00"


def glob_to_regex(pattern: str) -> str:
    """Translate a glob pattern into an anchored regular expression.

    Only dots are escaped; other regex metacharacters pass through.

    Example:
        >>> glob_to_regex("src/**/*.ts")
        '^src/.*/[^/]*\\\\.ts$'
    """
    regex = (
        pattern.replace(".", r"\.")
        .replace("**", _GLOBSTAR)
        .replace("*", "[^/]*")
        .replace(_GLOBSTAR, ".*")
        .replace("?", ".")
    )
    return f"^{regex}$"


@lru_cache(maxsize=512)
def _compile_glob(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(glob_to_regex(pattern))
    except (re.error, OverflowError, RecursionError) as e:
        logger.debug(f"Ignoring malformed glob {pattern!r}: {e}")
        return None


def match_glob(path: str, pattern: str) -> bool:
    """Return True if ``path`` matches the glob ``pattern``.

    Args:
        path: Candidate path string
        pattern: Glob pattern

    Returns:
        Whether the full path matches; False for malformed patterns

    Example:
        >>> match_glob("src/foo.ts", "src/*.ts")
        True
        >>> match_glob("src/sub/foo.ts", "src/*.ts")
        False
    """
    compiled = _compile_glob(pattern)
    if compiled is None:
        return False
    return compiled.fullmatch(path) is not None
