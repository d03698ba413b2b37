# tests/test_events.py
"""Tests for the event emitter."""

from __future__ import annotations

import logging

from plangraph.errors import StepNotFoundError
from plangraph.events import EventEmitter, PlanEvent, PlanEventType, emit, log_event


class TestEventEmitter:
    def test_delivers_in_subscription_order(self):
        emitter = EventEmitter()
        seen: list[str] = []
        emitter.subscribe(lambda e: seen.append("first"))
        emitter.subscribe(lambda e: seen.append("second"))
        emitter.emit(PlanEvent(type=PlanEventType.STEP_RESET))
        assert seen == ["first", "second"]

    def test_unsubscribe(self):
        emitter = EventEmitter()
        seen: list[PlanEvent] = []
        unsubscribe = emitter.subscribe(seen.append)
        emitter.emit(PlanEvent(type=PlanEventType.STEP_RESET))
        unsubscribe()
        unsubscribe()
        emitter.emit(PlanEvent(type=PlanEventType.STEP_RESET))
        assert len(seen) == 1

    def test_failing_subscriber_does_not_block_others(self, caplog):
        emitter = EventEmitter()
        seen: list[PlanEvent] = []

        def broken(event: PlanEvent) -> None:
            raise RuntimeError("subscriber broke")

        emitter.subscribe(broken)
        emitter.subscribe(seen.append)
        with caplog.at_level(logging.ERROR, logger="plangraph"):
            emitter.emit(PlanEvent(type=PlanEventType.LAYERS_COMPUTED))

        assert len(seen) == 1
        assert "subscriber broke" in caplog.text


class TestEmitHelper:
    def test_no_emitter_is_noop(self):
        emit(None, PlanEventType.STEP_RESET, plan_id="p", step_id="step1")

    def test_builds_event(self, recorded_events):
        emitter, events = recorded_events
        emit(emitter, PlanEventType.STEP_RESET, plan_id="p", step_id="step1", previous="failed")
        assert events == [
            PlanEvent(
                type=PlanEventType.STEP_RESET,
                plan_id="p",
                step_id="step1",
                data={"previous": "failed"},
            )
        ]


class TestLogEvent:
    def test_warning_events(self, caplog):
        event = PlanEvent(
            type=PlanEventType.STEP_NOT_FOUND,
            plan_id="p",
            step_id="step9",
            data={"error": StepNotFoundError("step9")},
        )
        with caplog.at_level(logging.DEBUG, logger="plangraph"):
            log_event(event)
        [record] = caplog.records
        assert record.levelno == logging.WARNING
        assert "step_not_found plan=p step=step9" in record.getMessage()
        assert "not found in plan" in record.getMessage()

    def test_other_events_at_debug(self, caplog):
        event = PlanEvent(type=PlanEventType.LAYERS_COMPUTED, data={"layers": [["step1"]]})
        with caplog.at_level(logging.DEBUG, logger="plangraph"):
            log_event(event)
        [record] = caplog.records
        assert record.levelno == logging.DEBUG
        assert "plan=- step=-" in record.getMessage()
