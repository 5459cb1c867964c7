# lexai/utils/logging.py

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5


def _handlers(log_dir: str, level: str):
    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler()
    rotating = RotatingFileHandler(
        os.path.join(log_dir, "lexai.log"),
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    for handler in (console, rotating):
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return console, rotating


def get_logger(name: str = "lexai") -> logging.Logger:
    """Named application logger writing to stderr and a rotating file."""
    log = logging.getLogger(name)
    log.setLevel(LOG_LEVEL)
    # uvicorn --reload imports this module again
    if not log.handlers:
        for handler in _handlers(LOG_DIR, LOG_LEVEL):
            log.addHandler(handler)
    log.propagate = False
    return log


logger = get_logger()
