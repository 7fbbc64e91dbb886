"""Filtering engine deciding which source entries get linked."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from .config import Config
from .ignore import DEFAULT_IGNORE_FILE, load_ignore_patterns
from .patterns import IgnorePattern, matches, matches_classified
from .printer import Printer

DEFAULT_INCLUDE: Tuple[str, ...] = ("*",)
DEFAULT_EXCLUDE: Tuple[str, ...] = (".*", "[A-Z]*")


@dataclass(frozen=True)
class Filter:
    """Per-session filter over the entries of a source directory.

    The decision for a filename is made in this order:

    1. Empty names are rejected.
    2. Names ignored by the ignore files are rejected.
    3. Names must match an include pattern (``*`` alone includes everything).
    4. Names matching an exclude pattern are rejected.

    Ignore files are evaluated in two passes: a name is ignored when any
    non-negated pattern matches it and no negated pattern matches it. The
    position of a negation relative to the patterns it overrides does not
    matter.

    Attributes:
        include_patterns (Tuple[str, ...]): Raw include patterns
        exclude_patterns (Tuple[str, ...]): Raw exclude patterns
        ignore_patterns (Tuple[IgnorePattern, ...]): Classified ignore-file
            patterns, ``.dotfilerignore`` entries first
        source_dir (Optional[Path]): Directory the ignore files came from
    """

    include_patterns: Tuple[str, ...] = DEFAULT_INCLUDE
    exclude_patterns: Tuple[str, ...] = DEFAULT_EXCLUDE
    ignore_patterns: Tuple[IgnorePattern, ...] = ()
    source_dir: Optional[Path] = None
    negations: Tuple[IgnorePattern, ...] = field(init=False, repr=False, compare=False)
    normals: Tuple[IgnorePattern, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "include_patterns", tuple(self.include_patterns))
        object.__setattr__(self, "exclude_patterns", tuple(self.exclude_patterns))
        object.__setattr__(self, "ignore_patterns", tuple(self.ignore_patterns))
        object.__setattr__(
            self, "negations", tuple(p for p in self.ignore_patterns if p.is_negation)
        )
        object.__setattr__(
            self, "normals", tuple(p for p in self.ignore_patterns if not p.is_negation)
        )

    @classmethod
    def from_config(
        cls, config: Config, source_dir: Path, printer: Optional[Printer] = None
    ) -> Filter:
        """Build a filter from configuration, loading ignore files from ``source_dir``.

        Args:
            config: Configuration providing the ``filtering`` section.
            source_dir: Directory holding the dotfiles and ignore files.
            printer: Printer for ignore-file status lines.

        Returns:
            A ready-to-use filter.
        """
        source_dir = Path(source_dir)
        ignore_patterns = load_ignore_patterns(
            source_dir,
            ignore_file=config.get("filtering.ignore_file", DEFAULT_IGNORE_FILE),
            use_gitignore=bool(config.get("filtering.use_gitignore", False)),
            printer=printer,
        )
        return cls(
            include_patterns=tuple(config.get("filtering.include", DEFAULT_INCLUDE)),
            exclude_patterns=tuple(config.get("filtering.exclude", DEFAULT_EXCLUDE)),
            ignore_patterns=tuple(ignore_patterns),
            source_dir=source_dir,
        )

    def should_process(self, filename: str) -> bool:
        """Return True if ``filename`` should be linked."""
        if not filename:
            return False
        if self.is_ignored(filename):
            return False
        if not self.is_included(filename):
            return False
        if self.is_excluded(filename):
            return False
        return True

    def is_ignored(self, filename: str) -> bool:
        if not any(matches_classified(p, filename) for p in self.normals):
            return False
        # rescued by a negation
        return not any(matches_classified(p.inner, filename) for p in self.negations)

    def is_included(self, filename: str) -> bool:
        if self.include_patterns == DEFAULT_INCLUDE:
            return True
        return any(matches(p, filename) for p in self.include_patterns)

    def is_excluded(self, filename: str) -> bool:
        return any(matches(p, filename) for p in self.exclude_patterns)
