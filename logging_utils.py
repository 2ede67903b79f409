"""Logging setup helpers for term-deck."""
from __future__ import annotations

import logging
from logging import Logger
from pathlib import Path
from typing import Optional


def configure_logging(level: str, log_file: Optional[Path], *, console: bool = True) -> Logger:
    """Configure root logger with console + file handlers.

    ``console=False`` keeps the terminal clean while a deck is presented live;
    only the file handler is attached then.
    """
    logger = logging.getLogger()
    resolved = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(resolved)

    # Clear existing handlers to avoid duplicate logs during repeated runs
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(resolved)
        logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(resolved)
        logger.addHandler(file_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    logger.debug("Logging configured", extra={"level": level, "file": str(log_file)})
    return logger


def get_logger(name: Optional[str] = None) -> Logger:
    """Return a module-level logger."""
    return logging.getLogger(name)
