"""Pipeline event emission.

Events are emitted for stage transitions, errors and completions so runs
can be followed in the logs without reading pipeline internals.
"""

from src.autofix.events.emitter import (
    EventEmitter,
    LoggingEventEmitter,
    NullEventEmitter,
)
from src.autofix.events.models import EventType, PipelineEvent

__all__ = [
    "EventEmitter",
    "EventType",
    "LoggingEventEmitter",
    "NullEventEmitter",
    "PipelineEvent",
]
