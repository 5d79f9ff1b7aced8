"""Logging setup for aiterm.

The REPL owns stdout and stderr for its own output, so by default only
warnings and errors reach the console. Set ``AITERM_LOG`` to a file path to
get a full trace there, and ``AITERM_LOG_LEVEL`` to change the threshold.
"""

import logging
import os
import sys

logger = logging.getLogger("aiterm")

_initialized = False

_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging():
    """Configure the `aiterm` logger once. Later calls are no-ops."""
    global _initialized
    if _initialized:
        return
    _initialized = True

    level_name = os.environ.get("AITERM_LOG_LEVEL", "WARNING").upper()
    log_level = _LEVEL_MAP.get(level_name, logging.WARNING)
    logger.setLevel(log_level)
    logger.propagate = False

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"
    )

    log_path = os.environ.get("AITERM_LOG")
    if log_path:
        log_path = os.path.expanduser(log_path)
        try:
            file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            return
        except OSError as e:
            print(f"[aiterm] Failed to open log file: {e}", file=sys.stderr)

    stderr_handler = logging.StreamHandler(sys.stderr)
    # Never clutter the REPL with anything below a warning.
    stderr_handler.setLevel(max(log_level, logging.WARNING))
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)


def get_logger(name: str) -> logging.Logger:
    """Return a child of the `aiterm` logger, e.g. `aiterm.session`."""
    if name.startswith("aiterm."):
        name = name[len("aiterm."):]
    return logger.getChild(name)
