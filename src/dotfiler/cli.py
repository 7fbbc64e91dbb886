"""Command line interface for dotfiler."""

from pathlib import Path
from typing import Optional

import click

from . import __version__
from .core.config import Config
from .core.link import LinkManager, SourceDirectoryError
from .core.logging import setup_logging
from .core.printer import Printer


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("source", required=False, type=click.Path(path_type=Path))
@click.option(
    "--dry-run", "-d", is_flag=True, help="Show what would be linked without making any changes"
)
@click.option("--restore", "-r", is_flag=True, help="Restore all backed up files")
@click.option("--list", "-l", "list_links", is_flag=True, help="List managed dotfiles")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to a configuration file (TOML, or YAML with a .yaml/.yml suffix)",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, "--version", "-v", prog_name="dotfiler")
@click.pass_context
def cli(
    ctx: click.Context,
    source: Optional[Path],
    dry_run: bool,
    restore: bool,
    list_links: bool,
    config_path: Optional[Path],
    debug: bool,
) -> None:
    """Symlink dotfiles from SOURCE into your home directory.

    Every entry of SOURCE that passes the filtering rules is linked to
    ~/.<name>. Existing files are moved to the backup directory first and
    can be put back with --restore.

    Filtering is configured in the [filtering] section of the configuration
    file and with a .dotfilerignore file in SOURCE (gitignore syntax).

    Configuration is read from --config, ./.dotfilerrc, ~/.dotfilerrc or
    ~/.config/dotfiler/config.toml, whichever is found first.

    Examples:

      # Link everything from ~/dotfiles
      dotfiler ~/dotfiles

      # Preview what would be linked
      dotfiler ~/dotfiles --dry-run

      # Show managed dotfiles and their status
      dotfiler --list

      # Put back the files that were replaced by links
      dotfiler --restore
    """
    printer = Printer()
    config = Config.load(config_path, printer=printer)
    config = config.merge_with_cli_options(dry_run=True if dry_run else None)

    setup_logging(
        debug=debug or config.get("general.verbose", False),
        log_file=config.get("general.log_file"),
    )

    manager = LinkManager(config, printer=printer)
    dry_run = config.get("general.dry_run", False)

    if restore:
        manager.restore_backups(dry_run=dry_run)
        return
    if list_links:
        manager.list_symlinks()
        return

    if source is None:
        default_source = config.get("general.default_source")
        source = Path(default_source) if default_source else None
    if source is None:
        click.echo(ctx.get_help())
        return

    if dry_run:
        printer.warning("DRY RUN MODE - No changes will be made", 1)

    try:
        manager.link_from_source(source, dry_run=dry_run)
    except SourceDirectoryError as e:
        printer.failure(str(e), 1)
        raise click.Abort()


def main() -> None:
    """Entry point for the dotfiler CLI."""
    cli()


if __name__ == "__main__":
    main()
