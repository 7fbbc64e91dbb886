"""Dotfiler: symlink dotfiles from a source directory into the home directory."""

__version__ = "1.1.0"
