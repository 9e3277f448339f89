"""
Blunder - Event listeners.

Event callbacks receive ``(item, http)`` for every handled fault, rendered
or not. LoggingListener forwards faults to the standard logging module.
"""

from __future__ import annotations

import logging
from typing import Optional

from .http import HttpMessaging
from .item import ExceptionItem

_STATUS_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "notice": logging.INFO,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class LoggingListener:
    """
    Log every handled fault with structured metadata.

    Fatal faults are logged at CRITICAL, everything else at the level
    matching its status.

    Usage:
        ```python
        run = Run(JsonHandler())
        run.on_event(LoggingListener())
        run.load()
        ```
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("blunder")

    def level_for(self, item: ExceptionItem) -> int:
        if item.is_fatal:
            return logging.CRITICAL
        return _STATUS_LEVELS.get(item.status, logging.DEBUG)

    def __call__(self, item: ExceptionItem, http: Optional[HttpMessaging] = None) -> None:
        self.logger.log(
            self.level_for(item),
            f"[{item.severity}] {item.message} ({item.file}:{item.line})",
            extra={"fault": item.to_dict()},
        )
