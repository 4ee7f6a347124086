# excom_catalog/config/logging_config.py

"""Per-run timestamped logging configuration for excom_catalog.

Each launch writes to its own file in ``logs/``, named after the launch
time (``logs/run_20261019_153045.log``).  API calls, geolocation
attempts and ranking passes of one session therefore end up together.

The stderr handler is optional: the TUI owns the terminal, so it runs
with file logging only.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from excom_catalog.config.settings import Settings

ROOT_LOGGER_NAME = "excom_catalog"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_level() -> int:
    level = logging.getLevelName(Settings.CONSOLE_LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(console: bool = True) -> Path:
    """Attach the run's handlers to the ``excom_catalog`` logger.

    Args:
        console: also log to stderr at ``Settings.CONSOLE_LOG_LEVEL``.

    Returns:
        The path of this run's log file.  Calling again after handlers
        are attached changes nothing and returns a fresh path.
    """
    Settings.LOGS_DIR.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = Settings.LOGS_DIR / f"run_{stamp}.log"

    project_logger = logging.getLogger(ROOT_LOGGER_NAME)
    project_logger.setLevel(logging.DEBUG)
    if project_logger.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )
    project_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(_console_level())
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        project_logger.addHandler(console_handler)

    project_logger.info("Logging to %s", log_file)
    return log_file
