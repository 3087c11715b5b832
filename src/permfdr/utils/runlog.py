from __future__ import annotations

import logging
from pathlib import Path

from permfdr.utils.paths import ensure_dir

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def setup_logger(log_path: Path, logger_name: str = "permfdr", *, echo: bool = False) -> logging.Logger:
    """File logger for one run; `echo` also streams records to stderr."""
    ensure_dir(log_path.parent)
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.INFO)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    formatter = logging.Formatter(LOG_FORMAT)
    fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    fh.setFormatter(formatter)
    logger.addHandler(fh)
    if echo:
        sh = logging.StreamHandler()
        sh.setFormatter(formatter)
        logger.addHandler(sh)
    return logger


def close_logger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
