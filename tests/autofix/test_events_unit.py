"""Unit tests for pipeline events and the logging emitter."""

import logging

from src.autofix.events import (
    EventType,
    LoggingEventEmitter,
    NullEventEmitter,
    PipelineEvent,
)
from tests.autofix.fakes import run_async


def _make_event(event_type=EventType.STATE_TRANSITION, **details) -> PipelineEvent:
    return PipelineEvent(
        event_type=event_type,
        issue_id="acme/widgets#1",
        repository="acme/widgets",
        details=details,
    )


class TestPipelineEvent:
    def test_log_dict_flattens_details(self):
        data = _make_event(stage="analyze").to_log_dict()

        assert data["event_type"] == "state_transition"
        assert data["issue_id"] == "acme/widgets#1"
        assert data["stage"] == "analyze"
        assert data["timestamp"].endswith("+00:00")


class TestLoggingEventEmitter:
    def test_transition_logged_at_info(self, caplog):
        emitter = LoggingEventEmitter(logger_name="autofix.test.events")

        with caplog.at_level(logging.INFO, logger="autofix.test.events"):
            run_async(emitter.emit(_make_event(stage="analyze")))

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.stage == "analyze"

    def test_error_logged_at_error(self, caplog):
        emitter = LoggingEventEmitter(logger_name="autofix.test.events")

        with caplog.at_level(logging.INFO, logger="autofix.test.events"):
            run_async(
                emitter.emit(
                    _make_event(EventType.ERROR, stage="implement", error_message="x")
                )
            )

        assert caplog.records[-1].levelno == logging.ERROR

    def test_null_emitter_discards(self):
        run_async(NullEventEmitter().emit(_make_event()))
