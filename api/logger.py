"""Logging setup for the service."""

import logging
import sys

from config import config

_logging_initialized = False

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s [%(name)s] %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once, writing to stdout."""
    global _logging_initialized

    if _logging_initialized:
        return
    _logging_initialized = True

    level_name = (level or config.log_level).upper()
    if config.debug:
        level_name = "DEBUG"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    # Library noise
    logging.getLogger("transitions").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging initialised at %s", level_name)
