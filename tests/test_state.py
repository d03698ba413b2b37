# tests/test_state.py
"""Tests for step state transitions and retry invalidation."""

from __future__ import annotations

import pytest

from plangraph.config.enums import StepStatus
from plangraph.errors import InvalidTransitionError, StepNotFoundError
from plangraph.events import PlanEventType
from plangraph.state import (
    find_dependent_steps,
    is_plan_complete,
    mark_completed,
    mark_executing,
    mark_failed,
    ready_steps,
    retry_from,
)
from tests.conftest import make_plan, make_step, statuses

PENDING = StepStatus.PENDING
COMPLETED = StepStatus.COMPLETED
FAILED = StepStatus.FAILED
EXECUTING = StepStatus.EXECUTING


class TestTransitions:
    def test_happy_path(self, recorded_events):
        emitter, events = recorded_events
        plan = make_plan(make_step("step1"))

        mark_executing(plan, "step1", emitter=emitter)
        assert plan.steps[0].status == EXECUTING
        step = mark_completed(plan, "step1", {"ok": True}, emitter=emitter)

        assert step is plan.steps[0]
        assert step.status == COMPLETED
        assert step.result == {"ok": True}
        assert [(e.data["previous"], e.data["status"]) for e in events] == [
            ("pending", "executing"),
            ("executing", "completed"),
        ]
        assert all(e.type == PlanEventType.STEP_STATUS_CHANGED for e in events)

    def test_failure_records_error(self):
        plan = make_plan(make_step("step1"))
        mark_executing(plan, "step1")
        mark_failed(plan, "step1", "boom")
        assert plan.steps[0].status == FAILED
        assert plan.steps[0].error == "boom"
        assert plan.steps[0].result is None

    def test_completing_pending_step_rejected(self):
        plan = make_plan(make_step("step1"))
        with pytest.raises(InvalidTransitionError) as exc_info:
            mark_completed(plan, "step1", "x")
        assert exc_info.value.current == "pending"
        assert exc_info.value.target == "completed"
        assert plan.steps[0].status == PENDING

    def test_re_executing_completed_step_rejected(self):
        plan = make_plan(make_step("step1", status=COMPLETED))
        with pytest.raises(InvalidTransitionError):
            mark_executing(plan, "step1")

    def test_unknown_step_returns_none(self, recorded_events, caplog):
        emitter, events = recorded_events
        plan = make_plan(make_step("step1"))
        with caplog.at_level("WARNING", logger="plangraph"):
            assert mark_executing(plan, "step9", emitter=emitter) is None
        assert "Step 'step9' not found in plan" in caplog.text
        assert [e.type for e in events] == [PlanEventType.STEP_NOT_FOUND]
        assert statuses(plan) == {"step1": PENDING}


class TestFindDependentSteps:
    def test_diamond_from_root(self, diamond_plan):
        ids = [s.id for s in find_dependent_steps(diamond_plan, "step1")]
        assert ids == ["step2", "step3", "step4"]

    def test_plan_order(self):
        plan = make_plan(
            make_step("step1"),
            make_step("step3", deps=["step2"]),
            make_step("step2", deps=["step1"]),
        )
        assert [s.id for s in find_dependent_steps(plan, "step1")] == ["step3", "step2"]

    def test_leaf_has_none(self, diamond_plan):
        assert find_dependent_steps(diamond_plan, "step4") == []

    def test_unknown_id(self, diamond_plan):
        assert find_dependent_steps(diamond_plan, "nope") == []

    def test_terminates_on_cycle(self):
        plan = make_plan(make_step("step1", deps=["step2"]), make_step("step2", deps=["step1"]))
        assert [s.id for s in find_dependent_steps(plan, "step1")] == ["step2"]


class TestReadySteps:
    def test_roots_ready_initially(self, diamond_plan):
        for step in diamond_plan.steps:
            step.reset()
        assert [s.id for s in ready_steps(diamond_plan)] == ["step1"]

    def test_join_waits_for_both_branches(self, diamond_plan):
        diamond_plan.steps[2].reset()
        diamond_plan.steps[3].reset()
        assert [s.id for s in ready_steps(diamond_plan)] == ["step3"]

    def test_dangling_dependency_ignored(self):
        plan = make_plan(make_step("step1", deps=["ghost"]))
        assert [s.id for s in ready_steps(plan)] == ["step1"]

    def test_plan_complete(self, diamond_plan):
        assert is_plan_complete(diamond_plan)
        diamond_plan.steps[3].reset()
        assert not is_plan_complete(diamond_plan)


class TestRetryFrom:
    def test_branch_retry(self, diamond_plan):
        reset = retry_from(diamond_plan, "step2")
        assert reset == ["step2", "step4"]
        assert statuses(diamond_plan) == {
            "step1": COMPLETED,
            "step2": PENDING,
            "step3": COMPLETED,
            "step4": PENDING,
        }
        assert diamond_plan.steps[1].result is None
        assert diamond_plan.steps[2].result == "b"

    def test_root_retry_resets_everything(self, diamond_plan):
        assert retry_from(diamond_plan, "step1") == ["step1", "step2", "step3", "step4"]
        assert set(statuses(diamond_plan).values()) == {PENDING}

    def test_target_reset_unconditionally(self):
        plan = make_plan(
            make_step("step1"),
            make_step("step2", "search", ["step1"], status=COMPLETED),
        )
        assert retry_from(plan, "step1") == ["step1", "step2"]
        assert set(statuses(plan).values()) == {PENDING}

    def test_pending_dependent_stops_walk(self):
        plan = make_plan(
            make_step("step1", status=COMPLETED),
            make_step("step2", deps=["step1"]),
            make_step("step3", deps=["step2"], status=COMPLETED),
        )
        assert retry_from(plan, "step1") == ["step1"]
        assert plan.steps[2].status == COMPLETED

    def test_failed_and_executing_dependents_reset(self):
        plan = make_plan(
            make_step("step1", status=COMPLETED),
            make_step("step2", deps=["step1"], status=FAILED),
            make_step("step3", deps=["step2"], status=EXECUTING),
        )
        plan.steps[1].error = "boom"
        assert retry_from(plan, "step1") == ["step1", "step2", "step3"]
        assert plan.steps[1].error is None
        assert set(statuses(plan).values()) == {PENDING}

    def test_clears_tool_calls(self, diamond_plan):
        diamond_plan.steps[3].tool_calls = [{"name": "join", "args": {}}]
        retry_from(diamond_plan, "step3")
        assert diamond_plan.steps[3].tool_calls == []

    def test_emits_reset_events(self, diamond_plan, recorded_events):
        emitter, events = recorded_events
        retry_from(diamond_plan, "step3", emitter=emitter)
        assert [(e.type, e.step_id, e.data["previous"]) for e in events] == [
            (PlanEventType.STEP_RESET, "step3", "completed"),
            (PlanEventType.STEP_RESET, "step4", "completed"),
        ]

    def test_unknown_step(self, diamond_plan, recorded_events):
        emitter, events = recorded_events
        assert retry_from(diamond_plan, "step42", emitter=emitter) == []
        assert set(statuses(diamond_plan).values()) == {COMPLETED}
        assert events[0].type == PlanEventType.STEP_NOT_FOUND
        assert isinstance(events[0].data["error"], StepNotFoundError)

    def test_unknown_step_strict(self, diamond_plan):
        with pytest.raises(StepNotFoundError, match="step42"):
            retry_from(diamond_plan, "step42", strict=True)

    def test_cycle_terminates(self):
        plan = make_plan(
            make_step("step1", deps=["step2"], status=COMPLETED),
            make_step("step2", deps=["step1"], status=COMPLETED),
        )
        assert retry_from(plan, "step1") == ["step1", "step2"]

    def test_idempotent(self, diamond_plan):
        retry_from(diamond_plan, "step2")
        snapshot = diamond_plan.model_dump()
        retry_from(diamond_plan, "step2")
        assert diamond_plan.model_dump() == snapshot
