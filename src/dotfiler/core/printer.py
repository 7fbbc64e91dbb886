"""Colored status lines for dotfiler output."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.text import Text

LINE_WIDTH = 80


class Printer:
    """Print indented, dash-padded status lines.

    A message printed at ``level`` 2 looks like::

        -- Loaded ignore patterns from .dotfilerignore ---------------------

    Messages are rendered as plain ``Text`` so square brackets in paths or
    in ``[DRY RUN]`` prefixes are printed as-is.

    Attributes:
        console (Console): Rich console the lines are written to
        width (int): Total width each line is padded to
    """

    def __init__(self, console: Optional[Console] = None, width: int = LINE_WIDTH) -> None:
        self.console = console or Console()
        self.width = width

    def format(self, message: str, level: int = 1) -> str:
        """Return the padded line for a message."""
        line = "-" * level + f" {message} "
        return line.ljust(self.width, "-")

    def success(self, message: str, level: int = 1) -> None:
        self._print(message, "green", level)

    def failure(self, message: str, level: int = 1) -> None:
        self._print(message, "red", level)

    def warning(self, message: str, level: int = 1) -> None:
        self._print(message, "yellow", level)

    def _print(self, message: str, style: str, level: int) -> None:
        self.console.print(Text(self.format(message, level), style=style), soft_wrap=True)
