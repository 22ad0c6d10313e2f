"""Glob pattern engine.

Compiles glob strings into precompiled regular expressions once, so a
recursive scan costs one ``match`` per file rather than one parse per file.

Supported syntax:
    ``**``     any sequence of characters, including ``/``
    ``**/``    zero or more leading directories
    ``*``      any sequence of characters within one path segment
    ``?``      exactly one character other than ``/``
    ``{a,b}``  alternation

Every other character matches literally. Patterns are anchored at both
ends and case-insensitive unless ``case_sensitive=True``.
"""

import re
import time
from collections.abc import Iterable

from toolkernel.exceptions import PatternError
from toolkernel.sandbox.base import FileEntry

SECONDS_PER_HOUR = 3600


def glob_to_regex(pattern: str) -> str:
    """Translate a glob pattern into an anchored regular expression string.

    Raises:
        PatternError: If braces are unbalanced

    Example:
        >>> glob_to_regex("src/**/*.ts")
        '^src/(?:.*/)?[^/]*\\\\.ts$'
    """
    parts: list[str] = ["^"]
    depth = 0
    i = 0
    n = len(pattern)

    while i < n:
        char = pattern[i]
        if char == "*":
            if pattern.startswith("**", i):
                if pattern.startswith("**/", i):
                    parts.append("(?:.*/)?")
                    i += 3
                else:
                    parts.append(".*")
                    i += 2
                continue
            parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "{":
            depth += 1
            parts.append("(?:")
        elif char == "}" and depth > 0:
            depth -= 1
            parts.append(")")
        elif char == "," and depth > 0:
            parts.append("|")
        else:
            parts.append(re.escape(char))
        i += 1

    if depth:
        raise PatternError(pattern, f"Unbalanced braces in pattern: {pattern}")

    parts.append("$")
    return "".join(parts)


class GlobMatcher:
    """Precompiled glob pattern.

    Example:
        >>> matcher = GlobMatcher("**/*.ts")
        >>> matcher.matches("a/b/c.ts"), matcher.matches("c.ts"), matcher.matches("c.js")
        (True, True, False)
    """

    def __init__(self, pattern: str, case_sensitive: bool = False):
        """Compile the pattern.

        Raises:
            PatternError: If the pattern cannot be compiled
        """
        self.pattern = pattern
        self.case_sensitive = case_sensitive
        flags = 0 if case_sensitive else re.IGNORECASE
        try:
            self._regex = re.compile(glob_to_regex(pattern), flags)
        except re.error as e:
            raise PatternError(pattern, f"Invalid glob pattern {pattern!r}: {e}") from e

    @property
    def regex(self) -> re.Pattern[str]:
        return self._regex

    def matches(self, path: str) -> bool:
        """Match a relative path (or a bare name) against the pattern."""
        return self._regex.match(path) is not None

    def __repr__(self) -> str:
        return f"GlobMatcher({self.pattern!r}, case_sensitive={self.case_sensitive})"


class IgnoreRules:
    """A set of single-segment ignore patterns applied to entry names.

    Example:
        >>> rules = IgnoreRules(["*.log", "node_modules"])
        >>> rules.is_ignored("debug.log"), rules.is_ignored("src")
        (True, False)
    """

    def __init__(self, patterns: Iterable[str] | None = None):
        self.matchers = [GlobMatcher(p) for p in (patterns or []) if p]

    def is_ignored(self, name: str) -> bool:
        return any(matcher.matches(name) for matcher in self.matchers)

    def __bool__(self) -> bool:
        return bool(self.matchers)


class PathFilter:
    """Include filter for recursive search.

    Patterns containing ``/`` are matched against the path relative to the
    search root; patterns without one are matched against the file name.
    """

    def __init__(self, pattern: str):
        self.matcher = GlobMatcher(pattern)
        self.match_relative = "/" in pattern

    def accepts(self, relative_path: str, name: str) -> bool:
        return self.matcher.matches(relative_path if self.match_relative else name)


def sort_by_recency(
    entries: Iterable[FileEntry],
    window_hours: float = 24.0,
    now: float | None = None,
) -> list[FileEntry]:
    """Order entries recent-first, then alphabetically.

    Entries modified within ``window_hours`` of ``now`` come first, newest
    first. Older entries follow, sorted by path.

    Args:
        entries: Files to order
        window_hours: Size of the recent window
        now: Reference timestamp (defaults to the current time)

    Returns:
        New ordered list
    """
    if now is None:
        now = time.time()
    cutoff = now - window_hours * SECONDS_PER_HOUR

    recent: list[FileEntry] = []
    older: list[FileEntry] = []
    for entry in entries:
        (recent if entry.modified_time > cutoff else older).append(entry)

    recent.sort(key=lambda e: (-e.modified_time, e.path))
    older.sort(key=lambda e: e.path)
    return recent + older
