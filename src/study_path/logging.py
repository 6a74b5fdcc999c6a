"""Logging for study_path.

Log lines go to stderr so the rich console on stdout stays readable.
Quiet by default (WARNING). The interactive loop redraws the screen a lot,
so STUDY_PATH_LOG_FILE can point at a file that keeps a copy of every line.
"""
from __future__ import annotations

import logging
import os
import sys

LEVEL_ENV = "STUDY_PATH_LOG_LEVEL"
FILE_ENV = "STUDY_PATH_LOG_FILE"

_loggers: dict[str, logging.Logger] = {}


def _level_from_env() -> int:
    level = logging.getLevelName(os.environ.get(LEVEL_ENV, "WARNING").upper())
    # getLevelName returns a string for names it does not know
    return level if isinstance(level, int) else logging.WARNING


def get_logger(name: str) -> logging.Logger:
    """Get the logger for one study_path module.

    Lines look like ``[study_path:{name}] LEVEL: message``. File lines are
    prefixed with a timestamp.

    Args:
        name: Short module name, e.g. "priorities" or "schedule".

    Returns:
        Logger named ``study_path.{name}`` at the level from
        STUDY_PATH_LOG_LEVEL.
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(f"study_path.{name}")

    if not logger.handlers:
        prefix = f"[study_path:{name}] %(levelname)s: %(message)s"
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(logging.Formatter(prefix))
        logger.addHandler(console)

        log_file = os.environ.get(FILE_ENV)
        if log_file:
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(logging.Formatter(f"%(asctime)s {prefix}"))
            logger.addHandler(file_handler)

        logger.setLevel(_level_from_env())

    _loggers[name] = logger
    return logger
