"""Test configuration."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Dict, Optional

import pytest
from rich.console import Console

from dotfiler.core.config import Config
from dotfiler.core.filter import Filter
from dotfiler.core.link import LinkManager
from dotfiler.core.printer import Printer


class CapturingPrinter(Printer):
    """Printer writing into an in-memory console."""

    def __init__(self) -> None:
        self.buffer = io.StringIO()
        super().__init__(Console(file=self.buffer, color_system=None, width=200))

    @property
    def output(self) -> str:
        return self.buffer.getvalue()


@pytest.fixture
def printer() -> CapturingPrinter:
    """Return a printer whose output can be inspected."""
    return CapturingPrinter()


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Create an empty dotfiles source directory."""
    source = tmp_path / "source"
    source.mkdir()
    return source


@pytest.fixture
def home_dir(tmp_path: Path) -> Path:
    """Create an empty home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def make_filter(source_dir: Path, printer: CapturingPrinter):
    """Build a filter over ``source_dir`` from a filtering section."""

    def _make(filtering: Optional[Dict[str, Any]] = None) -> Filter:
        config = Config({"filtering": filtering or {}}, printer=printer)
        return Filter.from_config(config, source_dir, printer)

    return _make


@pytest.fixture
def link_manager(home_dir: Path, printer: CapturingPrinter) -> LinkManager:
    """Create a link manager working inside ``home_dir``."""
    config = Config({"general": {"backup_dir": "~/.dotfiler_backup"}}, printer=printer)
    return LinkManager(config, printer=printer, home=home_dir)
