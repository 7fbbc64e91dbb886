"""Configuration management for dotfiler.

Configuration is looked up in this order, the first existing file wins:

1. The path given with ``--config``
2. ``./.dotfilerrc``
3. ``~/.dotfilerrc``
4. ``~/.config/dotfiler/config.toml``
5. Built-in defaults

Files are TOML unless their name ends in ``.yaml`` or ``.yml``.
"""

from __future__ import annotations

import copy
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml

from .printer import Printer

logger = logging.getLogger(__name__)

KeyPath = Union[str, Sequence[str]]

CONFIG_FILE_NAME = ".dotfilerrc"
XDG_CONFIG_PATH = Path(".config") / "dotfiler" / "config.toml"
YAML_SUFFIXES = (".yaml", ".yml")

ON_CONFLICT_CHOICES = ("backup", "skip", "overwrite")

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "general": {
        "backup_dir": "~/.dotfiler_backup",
        "dry_run": False,
        "verbose": False,
        "default_source": None,
        "home_dir": None,
        "log_file": None,
    },
    "filtering": {
        "exclude": [".*", "[A-Z]*"],
        "include": ["*"],
        "ignore_file": ".dotfilerignore",
        "use_gitignore": False,
    },
    "linking": {
        "backup_existing": True,
        "on_conflict": "backup",
    },
}

# Keys whose default is None but accept a string.
OPTIONAL_STRING_KEYS = {
    ("general", "default_source"),
    ("general", "home_dir"),
    ("general", "log_file"),
    ("filtering", "ignore_file"),
}


class Config:
    """Configuration class for dotfiler.

    Holds the defaults merged with whatever a configuration file provides.
    Values are addressed by key path, either dotted (``"filtering.include"``)
    or as a sequence (``("filtering", "include")``).

    Attributes:
        config (Dict[str, Dict[str, Any]]): Merged configuration sections
        path (Optional[Path]): File the configuration was loaded from
    """

    def __init__(
        self,
        config_data: Optional[Dict[str, Any]] = None,
        printer: Optional[Printer] = None,
    ) -> None:
        """Initialize configuration from defaults and optional overrides.

        Args:
            config_data: Sections to merge over the defaults.
            printer: Printer used to report problems with the data.
        """
        self.printer = printer or Printer()
        self.config: Dict[str, Dict[str, Any]] = copy.deepcopy(DEFAULT_CONFIG)
        self.path: Optional[Path] = None
        if config_data:
            self._merge_config(config_data)

    @classmethod
    def load(
        cls,
        config_file: Optional[Path] = None,
        printer: Optional[Printer] = None,
        cwd: Optional[Path] = None,
        home: Optional[Path] = None,
    ) -> Config:
        """Load configuration from the first config file found.

        Read errors and syntax errors are reported and the defaults are used.

        Args:
            config_file: Explicit path, used even if it does not exist.
            printer: Printer for error messages.
            cwd: Directory searched for a project ``.dotfilerrc``.
            home: Home directory searched for user configuration.

        Returns:
            The loaded configuration.
        """
        config = cls(printer=printer)
        path = find_config_file(config_file, cwd=cwd, home=home)
        if path is None:
            logger.debug("No configuration file found, using defaults")
            return config

        data = config._read_config_file(path)
        if data is not None:
            config._merge_config(data)
            config.path = path
            logger.debug("Loaded configuration from %s", path)
        return config

    def _read_config_file(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            self.printer.failure(
                f"Could not read config file {path}: {reason}. "
                "Falling back to default configuration."
            )
            return None

        try:
            if path.suffix in YAML_SUFFIXES:
                data = yaml.safe_load(content) or {}
            else:
                data = tomllib.loads(content)
        except (tomllib.TOMLDecodeError, yaml.YAMLError) as e:
            self.printer.failure(
                f"Invalid syntax in config file {path}: {e}. Using default configuration."
            )
            return None

        if not isinstance(data, dict):
            self.printer.failure(
                f"Config file {path} must contain a table of sections. "
                "Using default configuration."
            )
            return None
        return data

    def _merge_config(self, config_data: Dict[str, Any]) -> None:
        """Merge sections over the current configuration, one level deep.

        Unknown sections and keys are reported and dropped; values of the
        wrong type are reported and leave the current value in place.
        """
        for section, values in config_data.items():
            if section not in DEFAULT_CONFIG:
                self.printer.failure(
                    f"Unknown configuration section '{section}' found in config file"
                )
                continue
            if not isinstance(values, dict):
                self.printer.failure(f"Configuration section '{section}' must be a table")
                continue

            for key, value in values.items():
                if key not in DEFAULT_CONFIG[section]:
                    self.printer.failure(f"Unknown configuration key '{key}' found in config file")
                    continue
                try:
                    self.config[section][key] = normalize_value(section, key, value)
                except ValueError as e:
                    self.printer.failure(f"{e}. Keeping '{self.config[section][key]}'")

    def get(self, key_path: KeyPath, default: Any = None) -> Any:
        """Get a configuration value.

        Args:
            key_path: Dotted string or sequence of keys.
            default: Value returned when the key path does not exist.

        Returns:
            The configuration value, or the default if not found.

        Example:
            ```python
            config = Config()
            config.get("general.backup_dir")      # "~/.dotfiler_backup"
            config.get(("missing", "key"), "x")   # "x"
            ```
        """
        keys = key_path.split(".") if isinstance(key_path, str) else list(key_path)
        value: Any = self.config
        for key in keys:
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def merge_with_cli_options(self, dry_run: Optional[bool] = None) -> Config:
        """Return a copy with command line options applied.

        Options left as None keep the configured value.
        """
        merged = copy.copy(self)
        merged.config = copy.deepcopy(self.config)
        if dry_run is not None:
            merged.config["general"]["dry_run"] = dry_run
        return merged

    def validate(self) -> List[str]:
        """Validate configuration."""
        errors = []
        for section, defaults in DEFAULT_CONFIG.items():
            values = self.config.get(section)
            if not isinstance(values, dict):
                errors.append(f"{section} must be a table")
                continue
            for key in defaults:
                try:
                    normalize_value(section, key, values.get(key))
                except ValueError as e:
                    errors.append(str(e))
        return errors


def find_config_file(
    custom_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
    home: Optional[Path] = None,
) -> Optional[Path]:
    """Find the configuration file to load, or None for defaults."""
    if custom_path is not None:
        return Path(custom_path).expanduser()

    cwd = cwd or Path.cwd()
    home = home or Path.home()
    candidates = [
        cwd / CONFIG_FILE_NAME,
        home / CONFIG_FILE_NAME,
        home / XDG_CONFIG_PATH,
    ]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


def normalize_value(section: str, key: str, value: Any) -> Any:
    """Check a value against the type of its default and normalize it.

    Strings are accepted where a list of strings is expected, and an empty
    string or ``false`` unsets an optional string.

    Raises:
        ValueError: If the value has the wrong type.
    """
    default = DEFAULT_CONFIG[section][key]
    name = f"{section}.{key}"

    if (section, key) in OPTIONAL_STRING_KEYS:
        if value is None or value is False or value == "":
            return None
        if not isinstance(value, str):
            raise ValueError(f"{name} must be a string")
        return value

    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise ValueError(f"{name} must be a boolean")
        return value

    if isinstance(default, list):
        if isinstance(value, str):
            return [value]
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise ValueError(f"{name} must be a list of strings")
        return list(value)

    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    if name == "linking.on_conflict" and value not in ON_CONFLICT_CHOICES:
        raise ValueError(f"{name} must be one of {', '.join(ON_CONFLICT_CHOICES)}")
    return value
