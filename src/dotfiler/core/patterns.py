"""Pattern matching and ignore-line classification.

Two kinds of patterns are handled here:

- Raw patterns, as found in the ``filtering.include`` and
  ``filtering.exclude`` configuration lists. They are evaluated with
  :func:`matches`.
- Classified patterns, parsed from the lines of an ignore file
  (``.dotfilerignore`` or ``.gitignore``) by :func:`classify` and evaluated
  with :func:`matches_classified`.

Example:
    ```python
    from dotfiler.core.patterns import classify, matches, matches_classified

    matches("*.conf", "nginx.conf")            # True
    matches("vim", "vimrc")                    # True, substring match
    matches_classified(classify("/vim"), "vimrc")  # True, prefix match
    ```
"""

from __future__ import annotations

import re
import string
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Iterable, List, Optional

# Exclude sentinels: these two strings are not treated as globs.
DOT_PREFIX = ".*"
UPPERCASE_PREFIX = "[A-Z]*"

WILDCARDS = ("*", "?")


class PatternKind(Enum):
    """Kinds of ignore-file patterns."""

    SIMPLE = "simple"
    GLOB = "glob"
    DIRECTORY = "directory"
    ROOT_RELATIVE = "root_relative"
    NEGATE = "negate"


@dataclass(frozen=True)
class IgnorePattern:
    """A classified ignore-file line.

    ``text`` holds the pattern text for every kind except ``NEGATE``, which
    carries the re-classified remainder of the line in ``inner`` instead.
    """

    kind: PatternKind
    text: str = ""
    inner: Optional[IgnorePattern] = None

    @classmethod
    def simple(cls, text: str) -> IgnorePattern:
        return cls(PatternKind.SIMPLE, text)

    @classmethod
    def glob(cls, text: str) -> IgnorePattern:
        return cls(PatternKind.GLOB, text)

    @classmethod
    def directory(cls, text: str) -> IgnorePattern:
        return cls(PatternKind.DIRECTORY, text)

    @classmethod
    def root_relative(cls, text: str) -> IgnorePattern:
        return cls(PatternKind.ROOT_RELATIVE, text)

    @classmethod
    def negate(cls, inner: IgnorePattern) -> IgnorePattern:
        return cls(PatternKind.NEGATE, inner=inner)

    @property
    def is_negation(self) -> bool:
        return self.kind is PatternKind.NEGATE

    def __str__(self) -> str:
        if self.kind is PatternKind.NEGATE:
            return f"!{self.inner}"
        if self.kind is PatternKind.ROOT_RELATIVE:
            return f"/{self.text}"
        if self.kind is PatternKind.DIRECTORY:
            return f"{self.text}/"
        return self.text


def has_wildcards(pattern: str) -> bool:
    """Return True if the pattern contains ``*`` or ``?``."""
    return any(char in pattern for char in WILDCARDS)


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a glob into an anchored regular expression.

    ``*`` matches any run of characters, ``?`` exactly one character, and
    every other character (``.`` included) matches itself.
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def glob_match(pattern: str, filename: str) -> bool:
    """Match the whole filename against a glob."""
    return glob_to_regex(pattern).fullmatch(filename) is not None


def literal_match(pattern: str, filename: str) -> bool:
    """Exact or substring match, not anchored."""
    return filename == pattern or pattern in filename


def star_prefix_match(pattern: str, filename: str) -> bool:
    """Match ``*suffix`` patterns by suffix comparison."""
    return filename.endswith(pattern[1:])


def is_star_prefix(pattern: str) -> bool:
    return pattern.startswith("*") and not has_wildcards(pattern[1:])


def starts_with_uppercase(filename: str) -> bool:
    return bool(filename) and filename[0] in string.ascii_uppercase


def matches(pattern: str, filename: str) -> bool:
    """Match a raw include/exclude pattern against a filename.

    Rules are tried in order and the first applicable one decides:

    1. ``.*`` matches names starting with a dot.
    2. ``[A-Z]*`` matches names starting with an ASCII uppercase letter.
    3. Patterns without wildcards match exactly or as a substring.
    4. ``*suffix`` (no other wildcards) matches names ending in ``suffix``.
    5. Anything else is a glob matched against the whole name.

    Args:
        pattern: Raw pattern string from configuration.
        filename: Base name of the candidate file.

    Returns:
        True if the pattern matches the filename.
    """
    if pattern == DOT_PREFIX:
        return filename.startswith(".")
    if pattern == UPPERCASE_PREFIX:
        return starts_with_uppercase(filename)
    if not has_wildcards(pattern):
        return literal_match(pattern, filename)
    if is_star_prefix(pattern):
        return star_prefix_match(pattern, filename)
    return glob_match(pattern, filename)


def matches_classified(pattern: IgnorePattern, filename: str) -> bool:
    """Match a classified ignore pattern against a filename.

    Directory patterns match by name only since no file type information
    is available here. Negations never match on their own; their inner
    pattern is consulted by the filter's rescue pass.
    """
    kind = pattern.kind
    if kind is PatternKind.SIMPLE or kind is PatternKind.DIRECTORY:
        return literal_match(pattern.text, filename)
    if kind is PatternKind.GLOB:
        return glob_match(pattern.text, filename)
    if kind is PatternKind.ROOT_RELATIVE:
        if has_wildcards(pattern.text):
            return glob_match(pattern.text, filename)
        return filename.startswith(pattern.text)
    return False


def classify(line: str) -> IgnorePattern:
    """Classify a single ignore-file line.

    Args:
        line: A stripped, non-empty line that is not a comment.

    Returns:
        The classified pattern. Checks run in the order negation,
        root-relative, directory, glob, simple.
    """
    if line.startswith("!"):
        return IgnorePattern.negate(classify(line[1:]))
    if line.startswith("/"):
        return IgnorePattern.root_relative(line[1:])
    if line.endswith("/"):
        return IgnorePattern.directory(line[:-1])
    if has_wildcards(line):
        return IgnorePattern.glob(line)
    return IgnorePattern.simple(line)


def parse_ignore_lines(lines: Iterable[str]) -> List[IgnorePattern]:
    """Classify ignore-file lines, skipping blanks and ``#`` comments."""
    patterns = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(classify(line))
    return patterns
