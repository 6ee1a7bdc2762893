"""
Logging setup shared by every league module.

Each module calls ``setup_logger(__name__)`` once at import time. Records go
to stdout and to one dated file per day under ``Config.LOG_DIR``, so a
dispute can be traced back through the reports that caused it.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from league.config import Config

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def log_file_path() -> Path:
    """Today's log file, creating the log directory if needed"""
    log_dir = Path(Config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / f'league_bot_{datetime.now():%Y%m%d}.log'


def setup_logger(name: str) -> logging.Logger:
    """Return the named logger, attaching console and file handlers on first use"""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = logging.DEBUG if Config.DEBUG else logging.INFO
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    # The file keeps DEBUG records even when the console is at INFO
    file_handler = logging.FileHandler(log_file_path(), encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    return logger
