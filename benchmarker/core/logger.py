"""Console and file logging for Benchmarker.

Modules log through children of the ``benchmarker`` logger. The rich console
handler and the optional file handler are attached to that parent only, so
one level change reaches every module logger.
"""
import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "benchmarker"
FALLBACK_LOG_FILE = Path("/tmp/benchmarker.log")
FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# stdout is reserved for command results
console = Console(stderr=True)

_console_handler: Optional[RichHandler] = None
_file_handler: Optional[logging.FileHandler] = None


def _package_logger() -> logging.Logger:
    global _console_handler

    logger = logging.getLogger(PACKAGE_LOGGER)
    if _console_handler is None:
        _console_handler = RichHandler(console=console, show_path=False)
        _console_handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(_console_handler)
        logger.setLevel(logging.INFO)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` (typically ``__name__``).

    The returned logger keeps level NOTSET and inherits the package level
    and handlers.
    """
    _package_logger()
    return logging.getLogger(name)


def set_verbose(verbose: bool) -> None:
    """Switch all Benchmarker logging between INFO and DEBUG."""
    level = logging.DEBUG if verbose else logging.INFO
    _package_logger().setLevel(level)
    for handler in (_console_handler, _file_handler):
        if handler is not None:
            handler.setLevel(level)


def enable_file_logging(log_file: Union[str, Path], verbose: bool = False) -> Path:
    """Also write every record to ``log_file``.

    A second call replaces the previous file handler. When the log directory
    cannot be created, records go to /tmp/benchmarker.log instead.

    Returns:
        Path of the file actually written
    """
    global _file_handler

    target = Path(log_file)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
    except OSError:
        target = FALLBACK_LOG_FILE

    logger = _package_logger()
    if _file_handler is not None:
        logger.removeHandler(_file_handler)
        _file_handler.close()

    _file_handler = logging.FileHandler(target)
    _file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(_file_handler)
    set_verbose(verbose)

    logger.debug(f"Logging to {target}")
    return target
