"""Logging setup for tcmwalker."""

import logging
import sys
from pathlib import Path

from tcmwalker.config import default_log_file

logger = logging.getLogger("tcmwalker")


def setup_logging(debug: bool = False, log_file: Path | None = None) -> None:
    """
    Configure the tcmwalker logger.

    The terminal belongs to the UI while a session runs, so detailed records
    go to a file. Warnings and errors also go to stderr, which is where
    startup diagnostics end up before the UI takes over.

    Args:
        debug: Log at DEBUG instead of INFO.
        log_file: Log file path (defaults to <tmpdir>/tcmwalker.log).
    """
    level = logging.DEBUG if debug else logging.INFO

    detailed_formatter = logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s"
    )
    simple_formatter = logging.Formatter("%(levelname)s: %(message)s")

    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(simple_formatter)
    logger.addHandler(console_handler)

    if log_file is None:
        log_file = default_log_file()

    try:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)
    except OSError as e:
        # Keep running with the console handler only
        logger.warning("Could not create log file %s: %s", log_file, e)
