from __future__ import annotations

import logging
from pathlib import Path


def configure_logger(
    name: str, log_file: Path, level: int = logging.INFO
) -> logging.Logger:
    """Return a logger writing to ``log_file``, falling back to stderr."""

    logger = logging.getLogger(name)
    if not logger.handlers:
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
        except PermissionError:
            handler = logging.StreamHandler()
        formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger
