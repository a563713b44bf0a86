"""Debug logging with in-app viewer support.

Records from the ``gitstate`` logger are captured into a ring buffer that the
status screen shows on F12.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass(slots=True)
class LogEntry:
    group: str  # DEBUG, INFO, WARNING, ERROR
    message: str
    timestamp: float

    def format(self) -> str:
        stamp = time.strftime("%H:%M:%S", time.localtime(self.timestamp))
        return f"{stamp} {self.group:<7} {self.message}"


MAX_LOG_LINES = 2000
log_buffer: deque[LogEntry] = deque(maxlen=MAX_LOG_LINES)

# Incremented on every clear so viewers can tell their snapshot is outdated.
_buffer_generation: int = 0


class DebugLogHandler(logging.Handler):
    """Logging handler that captures records into the debug buffer."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            log_buffer.append(
                LogEntry(group=record.levelname, message=msg, timestamp=record.created)
            )
        except Exception:
            self.handleError(record)


_debug_logging_initialized: bool = False


def setup_debug_logging(level: int = logging.DEBUG) -> None:
    """Attach the buffer handler to the ``gitstate`` logger. Idempotent."""
    global _debug_logging_initialized

    if _debug_logging_initialized:
        return

    handler = DebugLogHandler()
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    package_logger = logging.getLogger("gitstate")
    package_logger.addHandler(handler)
    package_logger.setLevel(level)

    _debug_logging_initialized = True
    log.info("Debug logging initialized - press F12 to view logs")


def clear_log_buffer() -> None:
    global _buffer_generation
    log_buffer.clear()
    _buffer_generation += 1


def get_buffer_generation() -> int:
    return _buffer_generation
