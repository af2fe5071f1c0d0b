"""JSON logging for the sshproxy client.

Log lines go to stderr so they never mix with the success messages printed
on stdout. The logger is silent below WARNING until -v is given.
"""

import logging
import sys

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "sshproxy_client"

LOG_FIELDS = frozenset({"timestamp", "level", "message", "exc_info", "funcName", "lineno"})

# -v count -> level; anything above the last entry stays at DEBUG
VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter emitting only LOG_FIELDS, with levelname shortened to level."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = log_record.pop("levelname", record.levelname)
        for key in set(log_record) - LOG_FIELDS:
            del log_record[key]


def _setup_logger() -> logging.Logger:
    """Create the client logger once; later calls return it unchanged.

    Returns:
        Logger writing JSON lines, WARNING and above by default
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
            timestamp=True,
        )
    )
    logger.addHandler(handler)
    logger.setLevel(VERBOSITY_LEVELS[0])
    logger.propagate = False
    return logger


def set_verbosity(count: int) -> None:
    """Set the log level from the number of -v flags."""
    LOGGER.setLevel(VERBOSITY_LEVELS[max(0, min(count, len(VERBOSITY_LEVELS) - 1))])


LOGGER = _setup_logger()
