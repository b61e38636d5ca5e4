"""Event emitter implementations for pipeline observability.

This module defines an abstract EventEmitter interface and its
implementations:

- LoggingEventEmitter: Emits events as structured log entries
- NullEventEmitter: Discards events (for testing)
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from src.autofix.events.models import EventType, PipelineEvent


logger = logging.getLogger(__name__)


class EventEmitter(ABC):
    """Abstract base class for pipeline event emitters.

    Implementations should be fault-tolerant: the pipeline treats emit()
    failures as non-fatal, but a well-behaved emitter does not raise.
    """

    @abstractmethod
    async def emit(self, event: PipelineEvent) -> None:
        """Emit a pipeline event."""


class LoggingEventEmitter(EventEmitter):
    """Event emitter that logs events using structured logging.

    Events are logged at INFO, except ERROR events which are logged at
    ERROR level. Event fields are attached as `extra` for log aggregators.
    """

    def __init__(self, logger_name: Optional[str] = None):
        self._logger = logging.getLogger(logger_name) if logger_name else logger
        self._log_level_map = {
            EventType.STATE_TRANSITION: logging.INFO,
            EventType.COMPLETION: logging.INFO,
            EventType.ERROR: logging.ERROR,
        }

    async def emit(self, event: PipelineEvent) -> None:
        log_level = self._log_level_map.get(event.event_type, logging.INFO)
        self._logger.log(
            log_level,
            "Pipeline event: %s for %s",
            event.event_type.value,
            event.issue_id,
            extra=event.to_log_dict(),
        )


class NullEventEmitter(EventEmitter):
    """Event emitter that discards all events."""

    async def emit(self, event: PipelineEvent) -> None:
        pass
