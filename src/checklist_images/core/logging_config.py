"""Stdout logging for checklist-images, configured from the environment."""

import os
import sys
import logging
from typing import Optional

ROOT_LOGGER_NAME = "checklist-images"

STRUCTURED_FORMAT = (
    "%(asctime)s | %(name)s | %(levelname)-8s | "
    "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    return getattr(logging, name, logging.INFO)


def _build_formatter(format_type: str) -> logging.Formatter:
    # LOG_FORMAT wins over the caller's choice
    if os.getenv("LOG_FORMAT", format_type).lower() == "structured":
        return logging.Formatter(STRUCTURED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    return logging.Formatter(SIMPLE_FORMAT)


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Return logger ``name`` with a single stdout handler attached.

    Args:
        name: Logger name (defaults to "checklist-images")
        level: Level name; falls back to $LOG_LEVEL, then INFO. Unknown
            names resolve to INFO.
        format_type: "structured" or "simple"; $LOG_FORMAT overrides it.
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(format_type))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """Logger for ``component``, e.g. "compression" -> "checklist-images.compression"."""
    if component is None or component == ROOT_LOGGER_NAME:
        return setup_logger(ROOT_LOGGER_NAME)
    return setup_logger(f"{ROOT_LOGGER_NAME}.{component}")


logger = setup_logger()
