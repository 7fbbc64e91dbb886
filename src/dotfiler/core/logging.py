"""Logging configuration for dotfiler.

User-facing status lines go through :class:`dotfiler.core.printer.Printer`;
the standard ``logging`` module carries debug detail. This module wires the
root logger to a rich console handler and, optionally, a log file.

Example:
    ```python
    from dotfiler.core.logging import setup_logging

    setup_logging(debug=True, log_file="~/.dotfiler_backup/dotfiler.log")

    import logging
    logger = logging.getLogger(__name__)
    logger.debug("Linked %s", "bashrc")
    ```
"""

import logging
import sys
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    debug: bool = False,
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
    log_format: str = LOG_FORMAT,
) -> None:
    """Set up logging configuration.

    Console output uses rich formatting and shows warnings only, or
    everything when ``debug`` is set. The optional file handler always
    records debug messages.

    Args:
        debug: Whether to enable debug logging (default: False).
        log_file: Optional path to a log file. ``~`` is expanded and parent
                 directories are created.
        console: Rich console for the handler. If None, logs go to stderr.
        log_format: Format string for the file handler.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug or log_file else logging.WARNING)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=debug,
        enable_link_path=debug,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=debug,
    )
    console_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized (debug=%s)", debug)
    if log_file:
        logger.debug("Log file: %s", log_file)

    def handle_exception(
        exc_type: Type[BaseException],
        exc_value: BaseException,
        exc_traceback: Optional[TracebackType],
    ) -> None:
        """Log uncaught exceptions, except keyboard interrupts."""
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return

        logger.critical(
            "Uncaught exception",
            exc_info=(exc_type, exc_value, exc_traceback),
        )

    sys.excepthook = handle_exception
