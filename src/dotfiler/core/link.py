"""Symlinking of dotfiles with backup, listing and restore.

Every entry of a source directory accepted by the :class:`Filter` is linked
to ``~/.<name>``. Whatever already exists at the target is moved into the
backup directory first, and each move is recorded in ``backup.log`` so it
can be listed and restored later.

The backup log holds one entry per line::

    2025-01-01T12:00:00+00:00 | bashrc | /home/me/.bashrc | /home/me/.dotfiler_backup/bashrc
"""

from __future__ import annotations

import logging
import os
import shutil
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from .config import Config
from .filter import Filter
from .printer import Printer

logger = logging.getLogger(__name__)

BACKUP_LOG_NAME = "backup.log"
LOG_SEPARATOR = " | "


class SourceDirectoryError(ValueError):
    """Raised when the source directory cannot be used."""


class LinkStatus(Enum):
    """State of a managed dotfile in the home directory."""

    VALID = "valid"
    BROKEN = "broken"
    NOT_SYMLINK = "not_symlink"
    MISSING = "missing"


@dataclass(frozen=True)
class BackupEntry:
    """One line of the backup log."""

    timestamp: str
    filename: str
    original_path: Path
    backup_path: Path

    @classmethod
    def parse(cls, line: str) -> Optional[BackupEntry]:
        """Parse a log line, returning None if it is malformed."""
        parts = line.split(LOG_SEPARATOR)
        if len(parts) != 4 or not all(parts):
            return None
        timestamp, filename, original_path, backup_path = parts
        return cls(timestamp, filename, Path(original_path), Path(backup_path))

    def to_line(self) -> str:
        return LOG_SEPARATOR.join(
            [self.timestamp, self.filename, str(self.original_path), str(self.backup_path)]
        )


def path_exists(path: Path) -> bool:
    """Return True if anything is at ``path``, broken symlinks included."""
    return path.is_symlink() or path.exists()


def entry_type(path: Path) -> str:
    return "Folder" if path.is_dir() else "File"


def validate_source_directory(source: Path) -> None:
    """Check that ``source`` is an existing directory.

    Raises:
        SourceDirectoryError: If it is missing or not a directory.
    """
    if not source.exists():
        raise SourceDirectoryError(
            f"Source directory '{source}' does not exist. Please check the path and try again."
        )
    if not source.is_dir():
        kind = "file" if source.is_file() else "item"
        raise SourceDirectoryError(
            f"'{source}' is a {kind}, not a directory. "
            "Please provide a directory containing dotfiles."
        )


class LinkManager:
    """Manages dotfile symlinks in a home directory.

    Attributes:
        config (Config): Configuration with ``general``, ``filtering`` and
            ``linking`` settings
        printer (Printer): Status line output
        home (Path): Home directory links are created in
        backup_dir (Path): Directory existing files are moved to
        log_file (Path): Backup log inside ``backup_dir``
    """

    def __init__(
        self,
        config: Config,
        printer: Optional[Printer] = None,
        home: Optional[Path] = None,
    ) -> None:
        """Initialize the link manager.

        Args:
            config: Configuration object.
            printer: Printer for status lines. If None, creates a new printer.
            home: Home directory. Defaults to ``general.home_dir`` from the
                configuration, then to the current user's home.
        """
        self.config = config
        self.printer = printer or Printer()
        configured_home = config.get("general.home_dir")
        if home is None:
            home = Path(configured_home).expanduser() if configured_home else Path.home()
        self.home = Path(home)
        self.backup_dir = self._backup_directory()
        self.log_file = self.backup_dir / BACKUP_LOG_NAME

    def _backup_directory(self) -> Path:
        backup_dir = self.config.get("general.backup_dir", "~/.dotfiler_backup")
        if backup_dir == "~":
            return self.home
        if backup_dir.startswith("~/"):
            return self.home / backup_dir[2:]
        return Path(backup_dir).expanduser().absolute()

    def dotfile_path(self, filename: str) -> Path:
        """Return the home directory path ``filename`` is linked to."""
        return self.home / f".{filename}"

    def link_from_source(self, source: Path, dry_run: bool = False) -> List[Path]:
        """Link every accepted entry of ``source`` into the home directory.

        Args:
            source: Directory containing the dotfiles.
            dry_run: If True, only show what would be done.

        Returns:
            Targets that were linked, or would be in dry-run mode.

        Raises:
            SourceDirectoryError: If the source directory cannot be read.
        """
        source = Path(source).expanduser()
        validate_source_directory(source)

        try:
            names = sorted(entry.name for entry in source.iterdir())
        except PermissionError as e:
            raise SourceDirectoryError(
                f"Permission denied accessing '{source}'. Please check file permissions."
            ) from e
        except OSError as e:
            raise SourceDirectoryError(
                f"Error reading source directory '{source}': {e.strerror or e}. "
                "Please verify the directory is accessible."
            ) from e

        dotfile_filter = Filter.from_config(self.config, source, self.printer)

        linked: List[Path] = []
        for name in names:
            if not dotfile_filter.should_process(name):
                logger.debug("Skipping %s", name)
                continue
            if self.create(source, name, dry_run=dry_run):
                linked.append(self.dotfile_path(name))
        return linked

    def create(self, source: Path, filename: str, dry_run: bool = False) -> bool:
        """Link a single entry of ``source`` to ``~/.<filename>``.

        Args:
            source: Source directory.
            filename: Name of the entry to link.
            dry_run: If True, only show what would be done.

        Returns:
            True if the link exists afterwards (or would, in dry-run mode).
        """
        source_path = Path(source).expanduser().absolute() / filename
        target = self.dotfile_path(filename)
        kind = entry_type(source_path)
        exists = path_exists(target)
        on_conflict = self._conflict_policy()

        if target.is_symlink() and Path(os.readlink(target)) == source_path:
            self.printer.success(f"Already linked {target} -> {source_path}", 2)
            return True

        if dry_run:
            self.printer.warning(
                f"[DRY RUN] Would symlink {kind}: {source_path} -> {target}", 1
            )
            if exists:
                self.printer.warning(
                    f"[DRY RUN] Would {on_conflict} existing {kind} {target}", 2
                )
                return on_conflict != "skip"
            return True

        self.printer.warning(f"{kind}: {source_path}", 1)

        if exists:
            if on_conflict == "skip":
                self.printer.warning(f"Skipping existing {kind} {target}", 2)
                return False
            if on_conflict == "overwrite":
                if not self._remove(target):
                    return False
            elif not self.backup_existing(target, filename):
                return False

        try:
            target.symlink_to(source_path)
        except FileExistsError:
            self.printer.failure(
                f"{kind} {target} already exists. The backup may have failed. "
                "Please check manually.",
                2,
            )
            return False
        except OSError as e:
            self.printer.failure(
                f"Failed to create symlink for {kind} {target}: {e.strerror or e}. "
                "Check permissions and available space.",
                2,
            )
            return False

        self.printer.success(f"Successfully symlinked {kind} {target}", 2)
        return True

    def _conflict_policy(self) -> str:
        on_conflict = self.config.get("linking.on_conflict", "backup")
        if on_conflict == "backup" and not self.config.get("linking.backup_existing", True):
            return "skip"
        return on_conflict

    def backup_existing(self, target: Path, filename: str) -> bool:
        """Move ``target`` into the backup directory and log the move."""
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            self.printer.failure(
                f"Failed to create backup directory {self.backup_dir}: {e.strerror or e}", 2
            )
            return False

        backup_path = self.unique_backup_path(filename)
        try:
            shutil.move(str(target), str(backup_path))
        except OSError as e:
            self.printer.failure(f"Failed to backup {target}: {e.strerror or e}", 2)
            return False

        self.printer.success(f"Backed up existing file to {backup_path}", 2)
        self.log_backup(filename, target, backup_path)
        return True

    def unique_backup_path(self, filename: str) -> Path:
        """Return a free path for ``filename`` in the backup directory.

        An existing backup is never overwritten: later backups get the
        current Unix timestamp appended.
        """
        backup_path = self.backup_dir / filename
        if not path_exists(backup_path):
            return backup_path

        stamped = f"{filename}.{int(time.time())}"
        backup_path = self.backup_dir / stamped
        counter = 1
        while path_exists(backup_path):
            backup_path = self.backup_dir / f"{stamped}.{counter}"
            counter += 1
        return backup_path

    def log_backup(self, filename: str, original_path: Path, backup_path: Path) -> None:
        entry = BackupEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            filename=filename,
            original_path=original_path,
            backup_path=backup_path,
        )
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(entry.to_line() + "\n")

    def _read_log_lines(self) -> List[str]:
        return [line for line in self.log_file.read_text(encoding="utf-8").split("\n") if line]

    def _remove(self, path: Path) -> bool:
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            self.printer.failure(f"Failed to remove {path}: {e.strerror or e}", 2)
            return False
        return True

    def link_status(self, path: Path) -> Tuple[LinkStatus, Optional[Path]]:
        """Return the status of a managed path and its link target, if any."""
        if path.is_symlink():
            target = Path(os.readlink(path))
            if not path.exists():
                return LinkStatus.BROKEN, target
            return LinkStatus.VALID, target
        if path.exists():
            return LinkStatus.NOT_SYMLINK, None
        return LinkStatus.MISSING, None

    def list_symlinks(self) -> List[Tuple[Path, LinkStatus]]:
        """Print the status of every dotfile recorded in the backup log.

        Returns:
            ``(path, status)`` pairs in log order, one per managed path.
        """
        if not self.log_file.exists():
            self.printer.warning("No backup log found - no dotfiles are currently managed", 1)
            return []

        self.printer.warning("Managed Dotfiles", 1)

        paths: List[Path] = []
        for line in self._read_log_lines():
            entry = BackupEntry.parse(line)
            if entry is not None and entry.original_path not in paths:
                paths.append(entry.original_path)

        if not paths:
            self.printer.warning("No dotfiles currently managed", 2)
            return []

        statuses = []
        for path in paths:
            status, target = self.link_status(path)
            if status is LinkStatus.VALID:
                self.printer.success(f"✓ {path} → {target}", 2)
            elif status is LinkStatus.BROKEN:
                self.printer.failure(f"✗ {path} (broken symlink)", 2)
            elif status is LinkStatus.NOT_SYMLINK:
                self.printer.warning(f"⚠ {path} (exists but not a symlink)", 2)
            else:
                self.printer.warning(f"⚠ {path} (symlink not found)", 2)
            statuses.append((path, status))
        return statuses

    def restore_backups(self, dry_run: bool = False) -> int:
        """Move backed up files back to their original locations.

        The backup log is processed newest entry first. Entries whose backup
        no longer exists are skipped. Whatever sits at the original path is
        removed first unless it is a real directory.

        Args:
            dry_run: If True, only show what would be restored.

        Returns:
            Number of files restored (or that would be, in dry-run mode).
        """
        if not self.log_file.exists():
            self.printer.warning("No backup log found", 1)
            return 0

        restored = 0
        for line in reversed(self._read_log_lines()):
            entry = BackupEntry.parse(line)
            if entry is None:
                self.printer.warning(f"Invalid backup log entry: {line}", 2)
                continue
            if not path_exists(entry.backup_path):
                logger.debug("Backup %s no longer exists, skipping", entry.backup_path)
                continue
            if self.restore_entry(entry, dry_run=dry_run):
                restored += 1

        self.printer.success("Restore completed", 1)
        return restored

    def restore_entry(self, entry: BackupEntry, dry_run: bool = False) -> bool:
        original = entry.original_path
        if dry_run:
            self.printer.warning(
                f"[DRY RUN] Would restore {entry.filename} to {original}", 2
            )
            return True

        if path_exists(original):
            if original.is_dir() and not original.is_symlink():
                self.printer.failure(
                    f"Failed to restore {entry.filename}: {original} is a directory", 2
                )
                return False
            if not self._remove(original):
                return False

        try:
            shutil.move(str(entry.backup_path), str(original))
        except OSError as e:
            self.printer.failure(f"Failed to restore {entry.filename}: {e.strerror or e}", 2)
            return False

        self.printer.success(f"Restored {entry.filename} to {original}", 2)
        return True
