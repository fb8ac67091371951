"""Logging utilities for the file client."""
import logging
import sys
from typing import Optional, TextIO

from fsclient.core.config import Settings
from fsclient.core.job_context import current_job_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - job_id=%(job_id)s - %(message)s"


class JobIdFilter(logging.Filter):
    """Stamp records with the job being driven by the emitting task."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.job_id = current_job_id() or "-"
        return True


def configure_logging(
    settings: Settings, *,
    stream: Optional[TextIO] = None,
    logger_name: str = "fsclient",
) -> logging.Logger:
    """Attach a stream handler to the client logger and return it.

    Calling this again replaces the handler installed by the previous call,
    so the level can be changed at runtime without duplicating output.

    Args:
        settings: Client settings containing log-level information.
        stream: Destination of log lines, stderr by default.
        logger_name: Name of the logger to configure.

    Returns:
        Configured logger instance.
    """

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger = logging.getLogger(logger_name)

    for handler in list(logger.handlers):
        if any(isinstance(item, JobIdFilter) for item in handler.filters):
            logger.removeHandler(handler)
            handler.close()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.addFilter(JobIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False

    logger.debug("Logging configured with level %s", logging.getLevelName(log_level))
    return logger
