"""Loguru sink configuration shared by the CLI and batch entry points."""

from __future__ import annotations

import logging
import sys

from loguru import logger

from corpusgraph.utils.config import LoggingConfig

_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "openai._base_client")

_TEXT_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)


def configure_logging(config: LoggingConfig | None = None, *, verbose: bool = False) -> None:
    """Replace loguru's default sink with the configured stderr/file sinks."""
    config = config or LoggingConfig()
    level = "DEBUG" if verbose else config.level.upper()
    serialize = config.format == "json"

    logger.remove()
    if serialize:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_TEXT_FORMAT)

    if config.file:
        logger.add(
            config.file,
            level=level,
            serialize=serialize,
            rotation=f"{config.max_size_mb} MB",
            retention=config.backup_count,
        )

    if not verbose:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.ERROR)
