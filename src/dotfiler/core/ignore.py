"""Loading of ``.dotfilerignore`` and ``.gitignore`` files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .patterns import IgnorePattern, parse_ignore_lines
from .printer import Printer

logger = logging.getLogger(__name__)

DEFAULT_IGNORE_FILE = ".dotfilerignore"
GITIGNORE_FILE = ".gitignore"


def load_ignore_file(
    source_dir: Path, filename: str, printer: Optional[Printer] = None
) -> List[IgnorePattern]:
    """Load and classify the patterns of one ignore file.

    A missing file is not an error. A file that exists but cannot be read
    is reported as a warning; in both cases no patterns are returned.

    Args:
        source_dir: Directory containing the ignore file.
        filename: Name of the ignore file, e.g. ``.dotfilerignore``.
        printer: Printer for status lines. If None, creates a new printer.

    Returns:
        The classified patterns in file order.
    """
    printer = printer or Printer()
    ignore_path = Path(source_dir) / filename

    if not ignore_path.exists():
        logger.debug("No ignore file at %s", ignore_path)
        return []

    try:
        content = ignore_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
        logger.debug("Failed to read %s", ignore_path, exc_info=True)
        printer.warning(f"Could not read {filename}: {reason}", 2)
        return []

    printer.success(f"Loaded ignore patterns from {filename}", 2)
    patterns = parse_ignore_lines(content.split("\n"))
    logger.debug("Loaded %d patterns from %s", len(patterns), ignore_path)
    return patterns


def load_ignore_patterns(
    source_dir: Path,
    ignore_file: Optional[str] = DEFAULT_IGNORE_FILE,
    use_gitignore: bool = False,
    printer: Optional[Printer] = None,
) -> List[IgnorePattern]:
    """Load the ignore file and, if enabled, ``.gitignore``.

    Patterns from ``ignore_file`` come before those from ``.gitignore``.
    """
    patterns: List[IgnorePattern] = []
    if ignore_file:
        patterns.extend(load_ignore_file(source_dir, ignore_file, printer))
    if use_gitignore:
        patterns.extend(load_ignore_file(source_dir, GITIGNORE_FILE, printer))
    return patterns
