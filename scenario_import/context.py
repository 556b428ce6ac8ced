"""
Operation Context
=================

Explicit result/log context handed to each pipeline operation.

Operations record what happened (per-file failures, skipped rows, version
mismatches) as structured events that callers can inspect, instead of relying
on a process-wide logger for information that affects decisions. Every event
is also forwarded to the standard ``logging`` module.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

logger = logging.getLogger(__name__)


class EventLevel(Enum):
    """Severity of a recorded event."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOGGING_LEVELS = {
    EventLevel.DEBUG: logging.DEBUG,
    EventLevel.INFO: logging.INFO,
    EventLevel.WARNING: logging.WARNING,
    EventLevel.ERROR: logging.ERROR,
}


@dataclass
class LogEvent:
    """A single structured event."""
    level: EventLevel
    operation: str
    message: str
    file_path: Optional[str] = None

    def __str__(self) -> str:
        where = f" [{self.file_path}]" if self.file_path else ""
        return f"{self.level.value.upper()} {self.operation}{where}: {self.message}"


@dataclass
class OperationContext:
    """
    Collects events emitted while an operation runs.

    Attributes:
        events: Events in emission order
        logger: Logger that events are mirrored to
    """
    events: List[LogEvent] = field(default_factory=list)
    logger: logging.Logger = field(default=logger, repr=False)

    def emit(
        self,
        level: EventLevel,
        operation: str,
        message: str,
        file_path: Optional[str] = None,
    ) -> LogEvent:
        event = LogEvent(level, operation, message, file_path)
        self.events.append(event)
        self.logger.log(_LOGGING_LEVELS[level], "%s", event)
        return event

    def debug(self, operation: str, message: str, file_path: Optional[str] = None) -> LogEvent:
        return self.emit(EventLevel.DEBUG, operation, message, file_path)

    def info(self, operation: str, message: str, file_path: Optional[str] = None) -> LogEvent:
        return self.emit(EventLevel.INFO, operation, message, file_path)

    def warning(self, operation: str, message: str, file_path: Optional[str] = None) -> LogEvent:
        return self.emit(EventLevel.WARNING, operation, message, file_path)

    def error(self, operation: str, message: str, file_path: Optional[str] = None) -> LogEvent:
        return self.emit(EventLevel.ERROR, operation, message, file_path)

    @property
    def errors(self) -> List[LogEvent]:
        return [e for e in self.events if e.level == EventLevel.ERROR]

    @property
    def warnings(self) -> List[LogEvent]:
        return [e for e in self.events if e.level == EventLevel.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(e.level == EventLevel.ERROR for e in self.events)

    def for_file(self, file_path: str) -> List[LogEvent]:
        """Events attributed to one source file."""
        return [e for e in self.events if e.file_path == file_path]
