"""Shared logging configuration helpers."""

from __future__ import annotations

import logging
import sys
from logging import Handler
from pathlib import Path

from lazyholder.config import Config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(config: Config) -> None:
    """Configure logging outputs for the ``lazyholder`` loggers from config."""
    log_level_name = config.logging.log_level
    log_level = getattr(logging, log_level_name, logging.INFO)

    log_file = Path(config.logging.log_file).expanduser()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler: Handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    handlers: list[Handler] = [file_handler]
    if config.developer.debug_mode:
        stderr_handler: Handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(log_level)
        stderr_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handlers.append(stderr_handler)

    logger = logging.getLogger("lazyholder")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(log_level)

    logger.info("Logging initialized level=%s file=%s", log_level_name, log_file)
