"""Logging setup for whatever process hosts the server core."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = logging.INFO) -> None:
    """Every module logs through `logging.getLogger(__name__)`, so configuring the root logger is enough."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
