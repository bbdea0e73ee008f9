# tracker/app_logger.py
"""
Logging setup for the task tracker.

Every component gets a named logger that writes to a daily file under
<data dir>/logs. Structured context is appended to the message as JSON so the
log can be grepped or parsed line by line.
"""
import os
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any

DEFAULT_DATA_DIR = os.path.join(Path(__file__).resolve().parent.parent, 'data')


def get_data_dir() -> str:
    """Data directory root; TASK_TRACKER_DATA_DIR overrides the default."""
    return os.getenv('TASK_TRACKER_DATA_DIR') or DEFAULT_DATA_DIR


def get_log_dir() -> str:
    return os.path.join(get_data_dir(), 'logs')


def get_logger(component: str) -> logging.Logger:
    """Return the logger for a component.

    The file handler follows the current log directory: if
    TASK_TRACKER_DATA_DIR changed since the handler was attached, the old
    handler is closed and a new one opened under the new directory.
    """
    logger = logging.getLogger(f'task_tracker.{component}')
    log_dir = get_log_dir()
    if logger.handlers and getattr(logger, 'log_dir', None) == log_dir:
        return logger

    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    logger.setLevel(logging.INFO)
    logger.log_dir = log_dir
    try:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(
            os.path.join(log_dir, f'task_tracker_{datetime.now().strftime("%Y%m%d")}.log'),
            encoding='utf-8'
        )
    except OSError:
        # Read-only install location: keep logging usable without a file
        handler = logging.NullHandler()
    formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def log_event(logger: logging.Logger, level: int, message: str, data: Optional[Dict[str, Any]] = None):
    """Write a log entry with an optional JSON data suffix."""
    if logger.name.startswith('task_tracker.'):
        get_logger(logger.name[len('task_tracker.'):])
    if data:
        message = f"{message} | Data: {json.dumps(data, default=str)}"
    logger.log(level, message)
