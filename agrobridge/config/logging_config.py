# agrobridge/config/logging_config.py

"""Per-run timestamped logging configuration for AgroBridge.

Each launch (CLI, TUI or catalog server) creates a dedicated log file
inside ``logs/``, named with the launch timestamp
(e.g. ``logs/run_20261018_153045.log``).  Every ``agrobridge.*`` logger
routes through this file handler, so the paginator, the category client
and the server all write to the same per-run log.

The category pipeline degrades silently to safe defaults, which makes
this log the only place where dropped pages, unidentified records and
geolocation failures show up.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from agrobridge.config.settings import Settings

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(console_level: int = logging.WARNING) -> Path:
    """Initialise the root ``agrobridge`` logger for the current run.

    Args:
        console_level: Threshold for the stderr handler.  The TUI keeps
            the default so log lines do not tear the screen; the server
            lowers it to ``INFO``.

    Returns:
        The :class:`~pathlib.Path` to the log file created for this run.
    """
    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"run_{timestamp}.log"

    root_logger = logging.getLogger("agrobridge")
    root_logger.setLevel(logging.DEBUG)

    # Prevent duplicate handlers on repeated calls (e.g. tests)
    if root_logger.handlers:
        return log_file

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info("Logging initialised, log file: %s", log_file)

    return log_file
