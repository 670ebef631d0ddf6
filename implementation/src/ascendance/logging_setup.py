import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logger(log_file: Optional[Path] = None, level: int = logging.INFO,
                 console: bool = True) -> logging.Logger:
    """Configure the package logger once; later calls return it unchanged."""
    logger = logging.getLogger("ascendance")
    logger.setLevel(level)

    if not logger.handlers:
        fmt = logging.Formatter(LOG_FORMAT)
        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                log_file,
                maxBytes=1_000_000,
                backupCount=3,
                encoding="utf-8",
            )
            handler.setFormatter(fmt)
            logger.addHandler(handler)
        if console:
            stream = logging.StreamHandler()
            stream.setFormatter(fmt)
            logger.addHandler(stream)

    return logger
