"""
Logging configuration for complexity-lens.

Terminal output goes through rich on stderr so that JSON on stdout stays
machine-readable. Only the ``complexity_lens`` logger follows --verbose;
everything else stays at WARNING.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_ROOT_LOGGER = "complexity_lens"

# Batch analysis runs files on worker threads; the thread name tells them apart
_FILE_FORMAT = "%(asctime)s [%(threadName)s] %(name)s %(levelname)s: %(message)s"


def _level_for(verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Install stderr (and optional file) handlers for a CLI run.

    Args:
        verbose: complexity_lens loggers log at DEBUG
        quiet: Only errors, from any logger; wins over ``verbose``
        log_file: Optional file path to append logs to

    Returns:
        The package root logger
    """
    level = _level_for(verbose, quiet)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=verbose,
            show_path=verbose,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    logging.basicConfig(
        level=max(level, logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )

    logger = logging.getLogger(_ROOT_LOGGER)
    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger under the ``complexity_lens`` namespace.

    Module names inside the package (``complexity_lens.engine``) are used
    as-is; anything else, e.g. a plugin registering a language, is nested
    under the package logger so --verbose and --quiet apply to it.
    """
    if name is None or name == _ROOT_LOGGER:
        return logging.getLogger(_ROOT_LOGGER)

    if not name.startswith(_ROOT_LOGGER + "."):
        name = f"{_ROOT_LOGGER}.{name}"

    return logging.getLogger(name)
