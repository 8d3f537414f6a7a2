"""JSON logging configuration for DC certificate enrollment."""

import logging
import sys

from pythonjsonlogger import jsonlogger

# Keys emitted on every enrollment log line
LOG_FIELDS = frozenset({"timestamp", "level", "message", "exc_info", "funcName", "lineno"})


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter restricted to the fields operators read.

    Anything else the logging framework adds (module, process, thread, name)
    is dropped, so every enrollment log line has the same shape.
    """

    def add_fields(self, log_record, record, message_dict):
        """Populate the JSON record, then reduce it to LOG_FIELDS.

        levelname is published as ``level`` to match the keys the enrollment
        runbooks filter on.
        """
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = log_record.pop("levelname", record.levelname)

        for key in set(log_record) - LOG_FIELDS:
            del log_record[key]


def _setup_logger() -> logging.Logger:
    """Initialize and configure the enrollment logger.

    Returns:
        Configured logger writing JSON lines to stderr
    """
    logger = logging.getLogger("dc_enrollment")

    # Prevent duplicate handlers if module reloaded
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
            timestamp=True,
        )
    )

    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    # stdout carries the run summary only
    logger.propagate = False

    return logger


def set_verbose(verbose: bool) -> None:
    """Switch the enrollment logger between INFO and DEBUG."""
    LOGGER.setLevel(logging.DEBUG if verbose else logging.INFO)


LOGGER = _setup_logger()
