"""
File Handlers
=============

Optional file output, enabled when LOG_DIR is set:

logs/
├── app_YYYY-MM-DD.log     # everything at DEBUG and above
└── error_YYYY-MM-DD.log   # ERROR + CRITICAL only
"""

import logging
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from src.core.logging.formatters import FileFormatter, JsonFormatter


class DailyRotatingFileHandler(TimedRotatingFileHandler):
    """Rotates at midnight, file name carries the date."""

    def __init__(self, log_dir: Path, name: str, retention_days: int = 15, use_json: bool = False):
        log_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir = log_dir
        self.name_prefix = name
        today = datetime.now().strftime("%Y-%m-%d")

        super().__init__(
            filename=str(log_dir / f"{name}_{today}.log"),
            when="midnight",
            interval=1,
            backupCount=retention_days,
            encoding="utf-8",
        )
        self.setFormatter(JsonFormatter() if use_json else FileFormatter())

    def doRollover(self):
        if self.stream:
            self.stream.close()
            self.stream = None
        today = datetime.now().strftime("%Y-%m-%d")
        self.baseFilename = str(self.log_dir / f"{self.name_prefix}_{today}.log")
        self.stream = self._open()


class ErrorMirrorFilter(logging.Filter):
    """Only ERROR and CRITICAL pass."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def create_file_handlers(log_dir: str, use_json: bool = False, retention_days: int = 15) -> list:
    base = Path(log_dir)

    app_handler = DailyRotatingFileHandler(base, "app", retention_days, use_json)
    app_handler.setLevel(logging.DEBUG)

    error_handler = DailyRotatingFileHandler(base, "error", retention_days, use_json)
    error_handler.setLevel(logging.ERROR)
    error_handler.addFilter(ErrorMirrorFilter())

    return [app_handler, error_handler]
