"""
Logging setup for gdrive-davfs.

The package's own loggers (``gdrive_davfs.*``) follow ``[logging] level``.
The Drive client, google-auth and urllib3 log every request at DEBUG, so they
are held at ``[logging] library_level`` unless that is the more verbose of the
two.
"""

import logging
import sys
from pathlib import Path

from .config import LogConfig

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(threadName)s - %(message)s"

PACKAGE_LOGGER = "gdrive_davfs"
LIBRARY_LOGGERS = ("googleapiclient", "google.auth", "google_auth_httplib2", "urllib3")


def _level(name: str, default: int) -> int:
    return getattr(logging, name.upper(), default)


def setup_logging(config: LogConfig) -> None:
    """
    Configure logging from a LogConfig.

    Adds a FileHandler when ``config.file`` is set and a stderr StreamHandler
    when ``config.console`` is True. Existing root handlers are replaced.
    """
    level = _level(config.level, logging.INFO)
    library_level = max(level, _level(config.library_level, logging.WARNING))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear any existing handlers to avoid duplicates
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    if config.file:
        log_path = Path(config.file)
        if log_path.parent and not log_path.parent.exists():
            log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    if config.console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    for name in LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    # Warns on every build() when the discovery cache is off
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)
