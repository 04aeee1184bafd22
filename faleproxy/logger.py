"""Console logging for the proxy."""

from __future__ import annotations

import logging

from faleproxy.config import settings

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger that writes to the console.

    Handlers are attached once per logger name, so repeated calls (e.g. on
    module reload in tests) do not duplicate output.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(settings.log_level)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    logger.addHandler(handler)

    return logger
