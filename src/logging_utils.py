"""
Logger hierarchy for the rgxr client.

Every module logs under "rgxr.<module>", so one call to set_verbose turns
request tracing on or off for the whole client. Records go to stderr; stdout
is reserved for the CLI's JSON output.

Usage:
    from logging_utils import get_logger

    logger = get_logger(__name__)
    logger.debug("POST /api/render -> 200")
    logger.warning("Render artifact left without a record")
"""

import logging
import sys
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "rgxr"

DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%H:%M:%S"

_handler: Optional[logging.Handler] = None


def configure_logging(
    level: int = logging.INFO,
    format_str: str = DEFAULT_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """
    Attach the client's stderr handler to the "rgxr" logger.

    Only the first call attaches anything; later calls return the handler
    already in place.

    Args:
        level: Level of the "rgxr" logger (default: INFO)
        format_str: Record format
        date_format: Timestamp format
        stream: Where records go (default: sys.stderr)
    """
    global _handler
    if _handler is not None:
        return _handler

    client_logger = logging.getLogger(ROOT_LOGGER_NAME)
    client_logger.setLevel(level)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter(format_str, date_format))
    client_logger.addHandler(_handler)
    return _handler


def get_logger(name: str) -> logging.Logger:
    """Logger "rgxr.<name>" for a module; pass __name__."""
    configure_logging()

    # Imported as src.client when run from the repo root
    module = name[len("src."):] if name.startswith("src.") else name
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{module}")


def set_verbose(verbose: bool) -> None:
    """DEBUG (every request and response status) when verbose, else INFO."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(
        logging.DEBUG if verbose else logging.INFO
    )
