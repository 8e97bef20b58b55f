from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def build_logger(level: int = logging.INFO, log_dir: Path | None = None) -> logging.Logger:
    logger = logging.getLogger("selectorscope")
    if logger.handlers:
        return logger

    logger.setLevel(level)
    logger.propagate = False
    try:
        directory = log_dir or (Path.home() / ".selectorscope")
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / "selectorscope.log", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
    except OSError:
        # Fallback to stderr logging if file logger cannot be initialized.
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(stream_handler)
    return logger
