"""
Custom Logging - Bridge to the core logging system
==================================================

Usage:
    from src.utils.logger.custom_logging import LoggerMixin, get_logger

    # Option 1: module logger
    logger = get_logger(__name__)

    # Option 2: LoggerMixin (for classes)
    class MyAdapter(LoggerMixin):
        def fetch(self):
            self.logger.info("Hello")
"""

import logging

from src.core.logging import get_logger as _get_core_logger


class LoggerMixin:
    """
    Mixin class that provides a logger attribute.

    The logger is named ``<module>.<ClassName>`` and created on first access,
    so subclasses do not need to call ``super().__init__()`` for it.
    """

    @property
    def logger(self) -> logging.Logger:
        logger = self.__dict__.get("_logger")
        if logger is None:
            cls = self.__class__
            logger = _get_core_logger(f"{cls.__module__}.{cls.__name__}")
            self.__dict__["_logger"] = logger
        return logger


def get_logger(name: str) -> logging.Logger:
    """Quick function to get a logger; prefer src.core.logging.get_logger directly."""
    return _get_core_logger(name)
