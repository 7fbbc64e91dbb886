"""Core functionality for dotfiler."""

from .config import Config
from .filter import Filter
from .link import LinkManager, SourceDirectoryError
from .patterns import IgnorePattern, PatternKind, classify, matches, matches_classified
from .printer import Printer

__all__ = [
    "Config",
    "Filter",
    "IgnorePattern",
    "LinkManager",
    "PatternKind",
    "Printer",
    "SourceDirectoryError",
    "classify",
    "matches",
    "matches_classified",
]
