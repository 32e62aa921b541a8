"""Logging setup: stdout always, plus a daily-rotated ``server.log`` when a log directory is configured."""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from paper_tracker.core import config

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'
LOG_FILE_NAME = 'server.log'

_configured = False


def configure_logging(log_dir: str | None = None, level: str | None = None) -> None:
    global _configured

    if _configured:
        return

    formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(level or config.LOG_LEVEL)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    log_dir = log_dir if log_dir is not None else config.SERVER_LOG_PATH
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            Path(log_dir) / LOG_FILE_NAME,
            when='midnight',
            backupCount=14,
            encoding='utf-8',
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configured = True
