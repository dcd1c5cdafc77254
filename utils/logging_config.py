"""
Logging configuration for the music organizer.

The per-file transcript is ordinary INFO logging; this module decides where
it goes (console, optional rotating log file) and how it is formatted.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import List, Optional

APP_LOGGER_NAME = 'music-organizer'
DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
QUIET_LIBRARIES = ('mutagen', 'yaml')


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    console_output: bool = True,
    fmt: str = DEFAULT_FORMAT
) -> logging.Logger:
    """
    Route all records at ``level`` and above to stdout and/or a rotating file.

    Any handlers already on the root logger are replaced, so calling this
    twice does not duplicate the transcript. Undecodable characters in file
    names are written to the log file backslash-escaped.

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    handlers: List[logging.Handler] = []
    if console_output:
        handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8',
            errors='backslashreplace'
        ))

    formatter = logging.Formatter(fmt, datefmt='%Y-%m-%d %H:%M:%S')
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.debug(f"Logging initialized at {level.upper()}")
    if log_file:
        app_logger.info(f"Log file: {log_file}")
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """Child of the application logger, e.g. ``music-organizer.main``."""
    return logging.getLogger(APP_LOGGER_NAME).getChild(name)


def configure_library_logging():
    """Keep third-party loggers at WARNING so the transcript stays readable."""
    for lib_name in QUIET_LIBRARIES:
        logging.getLogger(lib_name).setLevel(logging.WARNING)
