from __future__ import annotations

import logging
import time
from collections import deque

PACKAGE_LOGGER = "phantom_deeplink_sdk"


class ActivityLog(logging.Handler):
    """Keeps recent SDK log lines as ``HH:MM:SS: message`` for on-screen display."""

    def __init__(self, capacity: int = 200, level: int = logging.INFO) -> None:
        super().__init__(level)
        self._lines: deque[str] = deque(maxlen=capacity)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            timestamp = time.strftime("%H:%M:%S", time.localtime(record.created))
            self._lines.append(f"{timestamp}: {record.getMessage()}")
        except Exception:
            self.handleError(record)

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def clear(self) -> None:
        self._lines.clear()


def attach_activity_log(handler: ActivityLog | None = None) -> ActivityLog:
    """Attach ``handler`` to the package logger, making sure INFO records reach it."""
    if handler is None:
        handler = ActivityLog()
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.addHandler(handler)
    if logger.getEffectiveLevel() > logging.INFO:
        logger.setLevel(logging.INFO)
    return handler


def detach_activity_log(handler: ActivityLog) -> None:
    logging.getLogger(PACKAGE_LOGGER).removeHandler(handler)
