"""Tests for configuration management."""

from pathlib import Path

import pytest
import yaml

from dotfiler.core.config import DEFAULT_CONFIG, Config, find_config_file


def test_default_config(printer) -> None:
    """Test default configuration values."""
    config = Config(printer=printer)
    assert config.get("general.backup_dir") == "~/.dotfiler_backup"
    assert config.get("general.dry_run") is False
    assert config.get("filtering.include") == ["*"]
    assert config.get("filtering.exclude") == [".*", "[A-Z]*"]
    assert config.get("filtering.ignore_file") == ".dotfilerignore"
    assert config.get("filtering.use_gitignore") is False
    assert config.get("linking.on_conflict") == "backup"
    assert config.path is None


def test_defaults_are_not_shared(printer) -> None:
    """Test that modifying one config does not touch the defaults."""
    config = Config(printer=printer)
    config.get("filtering.include").append("*.conf")
    assert DEFAULT_CONFIG["filtering"]["include"] == ["*"]
    assert Config(printer=printer).get("filtering.include") == ["*"]


def test_config_validation(printer) -> None:
    """Test configuration validation."""
    config = Config(printer=printer)
    assert config.validate() == []

    config.config["filtering"]["include"] = 5
    config.config["linking"]["on_conflict"] = "explode"
    errors = config.validate()
    assert "filtering.include must be a list of strings" in errors
    assert any("linking.on_conflict" in e for e in errors)


def test_get_key_paths(printer) -> None:
    """Test retrieving nested values by dotted or sequence key path."""
    config = Config(printer=printer)
    assert config.get(("general", "backup_dir")) == "~/.dotfiler_backup"
    assert config.get(["filtering", "use_gitignore"]) is False
    assert config.get("missing.key", "default") == "default"
    assert config.get("general.missing") is None
    assert config.get("general.backup_dir.deeper", "x") == "x"


def test_get_returns_explicit_none(printer) -> None:
    """Test that a value set to None is returned instead of the default."""
    config = Config({"filtering": {"ignore_file": None}}, printer=printer)
    assert config.get("filtering.ignore_file", ".dotfilerignore") is None


def test_load_toml_file(tmp_path: Path, printer) -> None:
    """Test loading configuration from a TOML file."""
    config_file = tmp_path / "custom.toml"
    config_file.write_text(
        '[general]\nbackup_dir = "/tmp/backups"\n\n'
        '[filtering]\ninclude = ["*.conf"]\nuse_gitignore = true\n'
    )
    config = Config.load(config_file, printer=printer, cwd=tmp_path, home=tmp_path)

    assert config.path == config_file
    assert config.get("general.backup_dir") == "/tmp/backups"
    assert config.get("general.dry_run") is False
    assert config.get("filtering.include") == ["*.conf"]
    assert config.get("filtering.exclude") == [".*", "[A-Z]*"]
    assert config.get("filtering.use_gitignore") is True


def test_load_yaml_file(tmp_path: Path, printer) -> None:
    """Test loading configuration from a YAML file."""
    config_file = tmp_path / "dotfiler.yaml"
    config_file.write_text(
        yaml.safe_dump({"filtering": {"exclude": ["*.tmp"], "ignore_file": None}})
    )
    config = Config.load(config_file, printer=printer, cwd=tmp_path, home=tmp_path)

    assert config.get("filtering.exclude") == ["*.tmp"]
    assert config.get("filtering.ignore_file") is None


def test_project_config_in_cwd(tmp_path: Path, printer) -> None:
    """Test loading .dotfilerrc from the current directory."""
    project = tmp_path / "project"
    home = tmp_path / "home"
    project.mkdir()
    home.mkdir()
    (project / ".dotfilerrc").write_text('[general]\nbackup_dir = "project"\n')
    (home / ".dotfilerrc").write_text('[general]\nbackup_dir = "user"\n')

    config = Config.load(printer=printer, cwd=project, home=home)
    assert config.get("general.backup_dir") == "project"


def test_user_config(tmp_path: Path, printer) -> None:
    """Test loading ~/.dotfilerrc when there is no project config."""
    home = tmp_path / "home"
    home.mkdir()
    (home / ".dotfilerrc").write_text('[general]\nbackup_dir = "user"\n')

    config = Config.load(printer=printer, cwd=tmp_path, home=home)
    assert config.get("general.backup_dir") == "user"


def test_xdg_config(tmp_path: Path, printer) -> None:
    """Test loading ~/.config/dotfiler/config.toml."""
    home = tmp_path / "home"
    xdg_dir = home / ".config" / "dotfiler"
    xdg_dir.mkdir(parents=True)
    (xdg_dir / "config.toml").write_text('[general]\nbackup_dir = "xdg"\n')

    assert find_config_file(cwd=tmp_path, home=home) == xdg_dir / "config.toml"
    config = Config.load(printer=printer, cwd=tmp_path, home=home)
    assert config.get("general.backup_dir") == "xdg"


def test_no_config_file(tmp_path: Path, printer) -> None:
    """Test that defaults are used when no file is found."""
    assert find_config_file(cwd=tmp_path, home=tmp_path) is None
    config = Config.load(printer=printer, cwd=tmp_path, home=tmp_path)
    assert config.get("general.backup_dir") == "~/.dotfiler_backup"
    assert printer.output == ""


def test_invalid_toml(tmp_path: Path, printer) -> None:
    """Test that invalid TOML falls back to defaults."""
    config_file = tmp_path / "bad.toml"
    config_file.write_text("[general\nbackup_dir = ")
    config = Config.load(config_file, printer=printer)

    assert config.get("general.backup_dir") == "~/.dotfiler_backup"
    assert "Invalid syntax in config file" in printer.output


def test_missing_custom_config(tmp_path: Path, printer) -> None:
    """Test that an explicit but missing config file falls back to defaults."""
    config = Config.load(tmp_path / "missing.toml", printer=printer)

    assert config.get("general.backup_dir") == "~/.dotfiler_backup"
    assert "Could not read config file" in printer.output


def test_unknown_sections_and_keys(tmp_path: Path, printer) -> None:
    """Test that unknown sections and keys are reported and dropped."""
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        '[general]\nbackup_dir = "/b"\nmystery = 1\n\n[packages]\nauto_brew = true\n'
    )
    config = Config.load(config_file, printer=printer)

    assert config.get("general.backup_dir") == "/b"
    assert config.get("general.mystery") is None
    assert config.get("packages") is None
    assert "Unknown configuration key 'mystery'" in printer.output
    assert "Unknown configuration section 'packages'" in printer.output


def test_value_normalization(printer) -> None:
    """Test that strings become lists and wrong types are rejected."""
    config = Config(
        {
            "filtering": {"include": "*.conf", "exclude": 3, "ignore_file": ""},
            "general": {"dry_run": "yes"},
        },
        printer=printer,
    )
    assert config.get("filtering.include") == ["*.conf"]
    assert config.get("filtering.exclude") == [".*", "[A-Z]*"]
    assert config.get("filtering.ignore_file") is None
    assert config.get("general.dry_run") is False
    assert "filtering.exclude must be a list of strings" in printer.output
    assert "general.dry_run must be a boolean" in printer.output


@pytest.mark.parametrize(
    "dry_run, configured, expected",
    [(None, False, False), (None, True, True), (True, False, True), (False, True, False)],
)
def test_merge_with_cli_options(printer, dry_run, configured: bool, expected: bool) -> None:
    """Test that CLI options override configuration unless unset."""
    config = Config({"general": {"dry_run": configured}}, printer=printer)
    merged = config.merge_with_cli_options(dry_run=dry_run)

    assert merged.get("general.dry_run") is expected
    assert config.get("general.dry_run") is configured
