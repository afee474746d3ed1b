"""
Logging helpers.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the ``clinic`` logger tree."""
    root = logging.getLogger("clinic")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a logger, namespacing bare names under ``clinic``."""
    if not name.startswith("clinic"):
        name = f"clinic.{name}"
    return logging.getLogger(name)
