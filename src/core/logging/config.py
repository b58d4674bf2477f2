"""
Logging Configuration
====================

Environment Variables (read through src.utils.config.Settings):
---------------------
- LOG_LEVEL: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- LOG_FORMAT: "json" for production, "text" for development (default)
- LOG_DIR: Directory for daily log files; empty disables file output

Usage:
------
```python
from src.core.logging import setup_logging, get_logger

setup_logging()              # once, at process start
logger = get_logger(__name__)
```
"""

import sys
import logging
from typing import Dict, Optional

from src.core.logging.formatters import DevFormatter, JsonFormatter
from src.core.logging.handlers import create_file_handlers
from src.utils.config import settings


_configured_loggers: Dict[str, logging.Logger] = {}
_logging_initialized = False

NOISY_LOGGERS = ["httpx", "httpcore", "asyncio", "urllib3"]


def setup_logging(
    level: Optional[str] = None,
    use_json: Optional[bool] = None,
    console: bool = True,
) -> None:
    """
    Initialize the logging system. Subsequent calls are no-ops.

    Args:
        level: Override LOG_LEVEL
        use_json: Override LOG_FORMAT (True for JSON, False for text)
        console: Attach a stdout handler
    """
    global _logging_initialized

    if _logging_initialized:
        return

    log_level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, log_level_name, logging.INFO)
    if use_json is None:
        use_json = settings.LOG_FORMAT.lower() == "json" or settings.ENV_STATE == "production"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # handlers filter

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(JsonFormatter() if use_json else DevFormatter(use_colors=True))
        root_logger.addHandler(console_handler)

    if settings.LOG_DIR:
        for handler in create_file_handlers(settings.LOG_DIR, use_json=use_json):
            root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    _logging_initialized = True
    root_logger.info(
        f"Logging initialized: level={log_level_name}, "
        f"format={'json' if use_json else 'text'}, dir={settings.LOG_DIR or '-'}"
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a cached logger by name ("app" when omitted)."""
    name = name or "app"
    if name not in _configured_loggers:
        _configured_loggers[name] = logging.getLogger(name)
    return _configured_loggers[name]


def shutdown_logging() -> None:
    """Flush handlers and allow setup_logging to run again."""
    global _logging_initialized

    logging.shutdown()
    _configured_loggers.clear()
    _logging_initialized = False
