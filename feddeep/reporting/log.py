"""Logger setup for FedDeep runs."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "feddeep"
_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def init_logging(log_level: str = "INFO", log_file: str | Path | None = None) -> logging.Logger:
    """Attach a console handler (and optionally a file handler) to the root
    ``feddeep`` logger, replacing handlers from any earlier call."""

    level = getattr(logging, str(log_level).upper(), logging.INFO)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(_FORMAT, _DATEFMT)
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(_LOGGER_NAME).getChild(name)


__all__ = ["get_logger", "init_logging"]
