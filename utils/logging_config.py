"""Process-wide logging setup."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-24s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_handler: Optional[logging.Handler] = None


def setup_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the root logger.

    Calling this more than once only updates the level.
    """
    global _handler
    root = logging.getLogger()
    root.setLevel(level)
    if _handler is not None and _handler in root.handlers:
        return

    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(_handler)
