# =============================================================================
# datasource/logging/config.py
# Logging Configuration for the DataSource Layer
# =============================================================================
"""
Logging for the `datasource` logger hierarchy.

The package never touches the root logger. Applications that want the
package's own output call setup_logging(); DataSource.initialize() applies
the configured request-logging switch to `datasource.remote`.
"""

import logging
import sys
import time
from pathlib import Path
from datetime import datetime
from typing import Optional


LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_DIR = Path("logs")

PACKAGE_LOGGER = "datasource"
REQUEST_LOGGER = "datasource.remote"

# Marks handlers installed by setup_logging so a second call replaces them
_HANDLER_FLAG = "_datasource_handler"


def set_request_logging(enabled: bool) -> None:
    """Show per-request debug lines from the remote client, or hide them."""
    level = logging.DEBUG if enabled else logging.WARNING
    logging.getLogger(REQUEST_LOGGER).setLevel(level)


def setup_logging(
    level: int = logging.INFO,
    log_to_file: bool = False,
    log_filename: Optional[str] = None,
    log_requests: bool = True,
) -> logging.Logger:
    """
    Attach handlers to the `datasource` logger.

    Args:
        level: Level for the package logger (default: INFO)
        log_to_file: Whether to also log to a file under LOG_DIR
        log_filename: Custom log filename (default: datasource_YYYY-MM-DD.log)
        log_requests: Debug-log each request made by the remote client

    Returns:
        The configured package logger
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in [h for h in package_logger.handlers if getattr(h, _HANDLER_FLAG, False)]:
        package_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_to_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        if log_filename is None:
            log_filename = f"datasource_{datetime.now().strftime('%Y-%m-%d')}.log"
        handlers.append(logging.FileHandler(LOG_DIR / log_filename))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_FLAG, True)
        package_logger.addHandler(handler)

    package_logger.setLevel(level)
    # Own handlers now; don't print everything twice through the root logger
    package_logger.propagate = False

    set_request_logging(log_requests)

    # Reduce noise from the HTTP stack
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("charset_normalizer").setLevel(logging.WARNING)

    package_logger.info("Logging initialized")
    return package_logger


class LogContext:
    """
    Context manager for logging operation timing and status.

    Usage:
        with LogContext(logger, "Initializing DataSource"):
            secure.initialize()
        # Logs: "Initializing DataSource... started"
        # Logs: "Initializing DataSource... completed (0.02s)"
    """

    def __init__(self, logger: logging.Logger, operation: str):
        self.logger = logger
        self.operation = operation
        self.start_time = None

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.info(f"{self.operation}... started")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed = time.monotonic() - self.start_time

        if exc_type is None:
            self.logger.info(f"{self.operation}... completed ({elapsed:.2f}s)")
        else:
            self.logger.error(
                f"{self.operation}... failed ({elapsed:.2f}s): {exc_val}",
                exc_info=True
            )

        return False
